"""
core/crypto.py — Caller Authentication Tokens
===============================================
The ledger never authenticates anyone itself — it trusts the principal handed
to it. Over HTTP that principal is the `sub` claim of a signed JWT.

Tokens are normally minted by the wallet / key management side; the
create_access_token() helper exists for tooling and tests.
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from config import settings

logger = logging.getLogger("medledger.crypto")


class InvalidToken(Exception):
    """Token missing, malformed, expired, or without a subject."""


def create_access_token(principal: str, extra_data: dict = None, expires_minutes: int = None) -> str:
    """Signed JWT whose subject is the caller's principal."""
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRY_MINUTES
    payload = {
        "sub": principal,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
        "iat": datetime.now(timezone.utc),
    }
    if extra_data:
        payload.update(extra_data)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT. Raises JWTError if invalid/expired."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def principal_from_token(token: str) -> str:
    try:
        claims = verify_token(token)
    except JWTError as exc:
        logger.warning(f"Rejected bearer token: {exc}")
        raise InvalidToken("Invalid or expired token") from exc
    principal = claims.get("sub")
    if not principal:
        raise InvalidToken("Token has no subject")
    return principal

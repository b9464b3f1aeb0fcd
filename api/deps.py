"""
api/deps.py — Shared Route Dependencies

    get_controller  → the ledger's access controller (override in tests)
    get_caller      → principal of the current request, from the bearer token
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from core.crypto import InvalidToken, principal_from_token
from modules.health import AccessController, controller


def get_controller() -> AccessController:
    return controller


def get_caller(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return principal_from_token(authorization[7:])
    except InvalidToken as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )

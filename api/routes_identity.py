"""
api/routes_identity.py — Identity API Endpoints
=================================================
Handles user registration and profile lookup.

Endpoints:
    POST /identity/register        → Register the calling principal
    GET  /identity/{principal}     → Lookup a profile
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_caller, get_controller
from db.archive import archive_after_commit
from db.session import get_db
from modules.health import AccessController

router = APIRouter()


# ── Request / Response schemas ────────────────────────────────────────────────
class RegisterRequest(BaseModel):
    name: str
    contact: str
    is_provider: bool = False


class ProfileResponse(BaseModel):
    principal: str
    registered: bool
    name: str = ""
    contact: str = ""
    role: str = ""


# ── Endpoints ─────────────────────────────────────────────────────────────────
@router.post("/register", response_model=ProfileResponse, status_code=201)
async def register_user(
    body: RegisterRequest,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
    db: AsyncSession = Depends(get_db),
):
    """Register the caller as a patient or provider. Works once per principal."""
    identity = ledger.register_user(caller, body.name, body.contact, body.is_provider)
    await archive_after_commit(db, ledger.audit_log)
    return ProfileResponse(
        principal=identity.principal,
        registered=True,
        name=identity.name,
        contact=identity.contact,
        role=identity.role.value,
    )


@router.get("/{principal}", response_model=ProfileResponse)
async def get_user_profile(principal: str, ledger: AccessController = Depends(get_controller)):
    """Unknown principals are not an error — they come back with registered=False."""
    identity = ledger.get_user_profile(principal)
    if identity is None:
        return ProfileResponse(principal=principal, registered=False)
    return ProfileResponse(
        principal=identity.principal,
        registered=identity.is_registered,
        name=identity.name,
        contact=identity.contact,
        role=identity.role.value,
    )

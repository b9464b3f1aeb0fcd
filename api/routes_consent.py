"""
api/routes_consent.py — Consent Management API Endpoints

Endpoints:
    POST /consent/grant                  → Patient grants a provider access
    POST /consent/revoke                 → Patient revokes a provider's access
    GET  /consent/audit                  → View the audit trail
    GET  /consent/{patient}/{provider}   → Does the provider have access?
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_caller, get_controller
from config import settings
from db.archive import archive_after_commit
from db.session import get_db
from modules.health import AccessController

router = APIRouter()


class AccessRequest(BaseModel):
    provider: str


async def _manage_access(ledger: AccessController, db: AsyncSession, caller: str, provider: str, grant: bool):
    ledger.manage_access(caller, provider, grant)
    await archive_after_commit(db, ledger.audit_log)
    return {
        "patient": caller,
        "provider": provider,
        "has_access": grant,
        "status": "granted" if grant else "revoked",
    }


@router.post("/grant")
async def grant_access(
    body: AccessRequest,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
    db: AsyncSession = Depends(get_db),
):
    """The calling patient grants a provider access to their records."""
    return await _manage_access(ledger, db, caller, body.provider, True)


@router.post("/revoke")
async def revoke_access(
    body: AccessRequest,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
    db: AsyncSession = Depends(get_db),
):
    """The calling patient revokes a provider's access."""
    return await _manage_access(ledger, db, caller, body.provider, False)


@router.get("/audit")
async def get_audit_trail(
    since: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1),
    ledger: AccessController = Depends(get_controller),
):
    """Audit events in commit order, starting at sequence `since`."""
    events = ledger.get_audit_trail(since=since, limit=min(limit, settings.AUDIT_TRAIL_MAX_LIMIT))
    return [event.model_dump(mode="json") for event in events]


@router.get("/{patient}/{provider}")
async def has_access(patient: str, provider: str, ledger: AccessController = Depends(get_controller)):
    return {
        "patient": patient,
        "provider": provider,
        "has_access": ledger.has_access(patient, provider),
    }

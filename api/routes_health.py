"""
api/routes_health.py — Health Records API Endpoints

Endpoints:
    POST /health/records                       → Provider adds a record for a patient
    GET  /health/records/count                 → Total records ever created
    GET  /health/records/{record_id}           → Read one record
    POST /health/records/{record_id}/deactivate → Administrator deactivates a record
    GET  /health/patients/{patient}/records    → A patient's record ids
    GET  /health/authored                      → Record ids the calling provider authored
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_caller, get_controller
from db.archive import archive_after_commit
from db.session import get_db
from modules.health import AccessController

router = APIRouter()


class HealthRecordRequest(BaseModel):
    patient: str
    content_ref: str            # encrypted payload or storage locator, never inspected
    record_type: str            # diagnosis | prescription | vaccination | lab_result


@router.post("/records", status_code=201)
async def add_health_record(
    body: HealthRecordRequest,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
    db: AsyncSession = Depends(get_db),
):
    record_id = ledger.create_health_record(caller, body.patient, body.content_ref, body.record_type)
    await archive_after_commit(db, ledger.audit_log)
    return {"record_id": record_id, "status": "created"}


@router.get("/records/count")
async def total_records(ledger: AccessController = Depends(get_controller)):
    return {"total_records": ledger.get_total_records()}


@router.get("/records/{record_id}")
async def get_health_record(
    record_id: int,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
):
    return ledger.get_health_record(caller, record_id).model_dump()


@router.post("/records/{record_id}/deactivate")
async def deactivate_record(
    record_id: int,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
    db: AsyncSession = Depends(get_db),
):
    ledger.deactivate_record(caller, record_id)
    await archive_after_commit(db, ledger.audit_log)
    return {"record_id": record_id, "active": False}


@router.get("/patients/{patient}/records")
async def list_patient_records(
    patient: str,
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
):
    return {"patient": patient, "record_ids": list(ledger.get_patient_records(caller, patient))}


@router.get("/authored")
async def list_authored_records(
    caller: str = Depends(get_caller),
    ledger: AccessController = Depends(get_controller),
):
    return {"provider": caller, "record_ids": list(ledger.get_authored_records(caller))}

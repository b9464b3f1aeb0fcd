"""
core/records.py — Record Store
===============================
Health records bound to a patient and an authoring provider.

Once created a record never changes except for its `active` flag, and it is
never deleted. Ids come from one global counter that starts at 0, only goes
up, and is never reused — deactivated records keep their id.

The store does not look at the permission matrix. The caller (the access
controller) checks the edge and passes the answer in as `permission_holds`.
"""

import logging
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

from core.errors import EmptyField, NoPermission, NotFound, NotRegistered, WrongRole
from core.identity import IdentityRegistry

logger = logging.getLogger("medledger.records")


class HealthRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: int
    patient: str
    provider: str
    content_ref: str        # encrypted payload or external storage locator
    record_type: str        # diagnosis | prescription | lab_result | ...
    created_at: int         # seconds since epoch
    active: bool = True


class RecordStore:

    def __init__(self, registry: IdentityRegistry):
        self._registry = registry
        self._records: Dict[int, HealthRecord] = {}
        self._patient_index: Dict[str, List[int]] = {}
        self._author_index: Dict[str, List[int]] = {}
        self._next_id = 0

    @property
    def total(self) -> int:
        return self._next_id

    def validate_create(self, patient: str, content_ref: str, record_type: str, permission_holds: bool):
        """Raise the first failing precondition for a new record, mutate nothing."""
        identity = self._registry.get(patient)
        if identity is None:
            raise NotRegistered(f"Patient {patient} is not registered")
        if identity.is_provider:
            raise WrongRole(f"{patient} is a provider, not a patient")
        if not content_ref:
            raise EmptyField("content_ref")
        if not record_type:
            raise EmptyField("record_type")
        if not permission_holds:
            raise NoPermission(f"No permission to add records for patient {patient}")

    def create_record(
        self,
        patient: str,
        provider: str,
        content_ref: str,
        record_type: str,
        permission_holds: bool,
        created_at: int,
    ) -> int:
        self.validate_create(patient, content_ref, record_type, permission_holds)

        record_id = self._next_id
        self._records[record_id] = HealthRecord(
            record_id=record_id,
            patient=patient,
            provider=provider,
            content_ref=content_ref,
            record_type=record_type,
            created_at=created_at,
        )
        self._patient_index.setdefault(patient, []).append(record_id)
        self._author_index.setdefault(provider, []).append(record_id)
        self._next_id += 1

        logger.info(f"Record #{record_id} [{record_type}] created for {patient} by {provider}")
        return record_id

    def get(self, record_id: int) -> HealthRecord:
        record = self._records.get(record_id)
        if record is None:
            raise NotFound(f"Record {record_id} does not exist")
        return record

    def deactivate(self, record_id: int):
        """Flip `active` to False. Deactivating twice is fine."""
        record = self.get(record_id)
        if record.active:
            self._records[record_id] = record.model_copy(update={"active": False})
            logger.info(f"Record #{record_id} deactivated")

    def index_for(self, patient: str) -> Tuple[int, ...]:
        return tuple(self._patient_index.get(patient, ()))

    def authored_by(self, provider: str) -> Tuple[int, ...]:
        return tuple(self._author_index.get(provider, ()))

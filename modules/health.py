"""
modules/health.py — Access Controller
======================================
The only entry point into the ledger. Every external call comes through here.

Flow of a mutating call:
    lock → check caller → check target → check input → check permission
         → mutate state → append audit event → unlock

All checks run before any mutation, so a failed call leaves the state
untouched. The order of checks is fixed: registration, then role, then
input, then permission — an unregistered target reports "not registered"
even if the rest of the call is malformed too.
"""

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from config import settings
from core.audit import AuditEvent, AuditLog, AuditTag
from core.consent import can_read
from core.errors import CallerNotProvider, NotRegistered, Unauthorized
from core.identity import Identity
from core.records import HealthRecord
from core.state import LedgerState

logger = logging.getLogger("medledger.modules.health")


def _wall_clock() -> int:
    return int(time.time())


class AccessController:

    def __init__(
        self,
        state: LedgerState,
        audit_log: AuditLog,
        admin: str,
        clock: Callable[[], int] = _wall_clock,
    ):
        self.state = state
        self.audit_log = audit_log
        self._admin = admin
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def admin(self) -> str:
        return self._admin

    # ── Mutations ─────────────────────────────────────────────────────────
    def register_user(self, caller: str, name: str, contact: str, is_provider: bool) -> Identity:
        with self._lock:
            identity = self.state.registry.register(caller, name, contact, is_provider)
            self.audit_log.append(AuditTag.USER_REGISTERED, self._clock(), principal=caller)
            return identity

    def create_health_record(self, caller: str, patient: str, content_ref: str, record_type: str) -> int:
        """A provider adds a record for a patient who has granted them access."""
        with self._lock:
            self._require_provider(caller)
            now = self._clock()
            permission_holds = self.state.permissions.check(patient, caller)
            record_id = self.state.records.create_record(
                patient=patient,
                provider=caller,
                content_ref=content_ref,
                record_type=record_type,
                permission_holds=permission_holds,
                created_at=now,
            )
            self.audit_log.append(
                AuditTag.RECORD_CREATED, now,
                principal=caller, patient=patient, provider=caller, record_id=record_id,
            )
            return record_id

    def manage_access(self, caller: str, provider: str, grant: bool):
        """A patient grants or revokes a provider's access to their own records."""
        with self._lock:
            self.state.permissions.set_permission(caller, provider, grant)
            tag = AuditTag.ACCESS_GRANTED if grant else AuditTag.ACCESS_REVOKED
            self.audit_log.append(tag, self._clock(), principal=caller, patient=caller, provider=provider)

    def deactivate_record(self, caller: str, record_id: int):
        with self._lock:
            if caller != self._admin:
                logger.warning(f"Deactivation of record #{record_id} DENIED for {caller}")
                raise Unauthorized("Only the administrator can deactivate records")
            self.state.records.deactivate(record_id)
            self.audit_log.append(AuditTag.RECORD_DEACTIVATED, self._clock(), principal=caller, record_id=record_id)

    # ── Reads ─────────────────────────────────────────────────────────────
    def get_user_profile(self, principal: str) -> Optional[Identity]:
        with self._lock:
            return self.state.registry.get(principal)

    def get_patient_records(self, caller: str, patient: str) -> Tuple[int, ...]:
        with self._lock:
            if not can_read(self.state.registry, self.state.permissions, caller, patient):
                raise Unauthorized(f"{caller} may not read records of {patient}")
            return self.state.records.index_for(patient)

    def get_health_record(self, caller: str, record_id: int) -> HealthRecord:
        with self._lock:
            record = self.state.records.get(record_id)
            if not can_read(self.state.registry, self.state.permissions, caller, record.patient):
                raise Unauthorized(f"{caller} may not read record {record_id}")
            return record

    def get_authored_records(self, caller: str) -> Tuple[int, ...]:
        """The caller's own creation history — kept even after access is revoked."""
        with self._lock:
            self._require_provider(caller)
            return self.state.records.authored_by(caller)

    def has_access(self, patient: str, provider: str) -> bool:
        with self._lock:
            return self.state.permissions.check(patient, provider)

    def get_total_records(self) -> int:
        with self._lock:
            return self.state.records.total

    def get_audit_trail(self, since: int = 0, limit: int = 50) -> List[AuditEvent]:
        with self._lock:
            return self.audit_log.poll(since=since, limit=limit)

    # ── Helpers ───────────────────────────────────────────────────────────
    def _require_provider(self, caller: str) -> Identity:
        identity = self.state.registry.get(caller)
        if identity is None:
            raise NotRegistered(f"Caller {caller} is not registered")
        if not identity.is_provider:
            raise CallerNotProvider("Only providers can perform this operation")
        return identity


def build_controller() -> AccessController:
    """Fresh ledger with the configured administrator."""
    return AccessController(LedgerState(), AuditLog(), admin=settings.ADMIN_PRINCIPAL)


# Singleton — import this everywhere:  from modules.health import controller
controller = build_controller()

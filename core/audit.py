"""
core/audit.py — Audit Log
==========================
Append-only, hash-chained sequence of events emitted by the access controller.
Each event links to the previous one by hash, like a block on a chain, so any
later tampering shows up in verify().

Consumers can either:
  - subscribe(callback)      → called synchronously for every new event
  - poll(since, limit)       → read events by sequence number

Events are appended in commit order and never mutated or deleted.
"""

import hashlib
import json
import logging
import uuid
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger("medledger.audit")

GENESIS_HASH = "0" * 64


class AuditTag(str, Enum):
    USER_REGISTERED = "UserRegistered"
    RECORD_CREATED = "RecordCreated"
    ACCESS_GRANTED = "AccessGranted"
    ACCESS_REVOKED = "AccessRevoked"
    RECORD_DEACTIVATED = "RecordDeactivated"


class AuditEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequence: int
    tag: AuditTag
    timestamp: int
    principal: Optional[str] = None     # who performed the operation
    patient: Optional[str] = None
    provider: Optional[str] = None
    record_id: Optional[int] = None
    prev_hash: str
    hash: str


def _event_hash(fields: dict) -> str:
    payload = json.dumps(fields, sort_keys=True)
    return hashlib.sha3_256(payload.encode()).hexdigest()


def _hashed_fields(event: AuditEvent) -> dict:
    return event.model_dump(mode="json", exclude={"hash"})


Subscriber = Callable[[AuditEvent], None]


class AuditLog:

    def __init__(self):
        # Sequences restart at 0 with every new log; run_id tells runs apart.
        self.run_id = uuid.uuid4().hex
        self._events: List[AuditEvent] = []
        self._subscribers: List[Subscriber] = []

    def append(
        self,
        tag: AuditTag,
        timestamp: int,
        principal: Optional[str] = None,
        patient: Optional[str] = None,
        provider: Optional[str] = None,
        record_id: Optional[int] = None,
    ) -> AuditEvent:
        prev_hash = self._events[-1].hash if self._events else GENESIS_HASH
        fields = {
            "sequence": len(self._events),
            "tag": AuditTag(tag).value,
            "timestamp": timestamp,
            "principal": principal,
            "patient": patient,
            "provider": provider,
            "record_id": record_id,
            "prev_hash": prev_hash,
        }
        event = AuditEvent(**fields, hash=_event_hash(fields))
        self._events.append(event)
        logger.info(f"Event #{event.sequence} [{event.tag.value}] hash={event.hash[:16]}...")

        self._deliver(event)
        return event

    def _deliver(self, event: AuditEvent):
        # A broken subscriber must not undo a committed operation or starve the others.
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Audit subscriber {callback!r} failed on event #{event.sequence}")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def poll(self, since: int = 0, limit: Optional[int] = None) -> List[AuditEvent]:
        """Events with sequence >= since, oldest first."""
        since = max(since, 0)
        end = None if limit is None else since + max(limit, 0)
        return self._events[since:end]

    def verify(self) -> bool:
        """Recompute every hash and link. False if anything was altered."""
        prev_hash = GENESIS_HASH
        for position, event in enumerate(self._events):
            if event.sequence != position or event.prev_hash != prev_hash:
                return False
            if _event_hash(_hashed_fields(event)) != event.hash:
                return False
            prev_hash = event.hash
        return True

    @property
    def head(self) -> str:
        return self._events[-1].hash if self._events else GENESIS_HASH

    def __len__(self) -> int:
        return len(self._events)

"""
db/models.py — Database Table Definitions
==========================================
The ledger state lives in memory; the database keeps a durable copy of the
audit trail. Rows are inserted once and never updated.

Each process run starts a new in-memory log whose sequences begin at 0, so rows
are keyed by (run_id, sequence).
"""

from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from db.session import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventRecord(Base):
    __tablename__ = "audit_events"
    __table_args__ = (UniqueConstraint("run_id", "sequence", name="uq_audit_run_sequence"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)   # AuditLog.run_id
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    tag: Mapped[str] = mapped_column(String(50), nullable=False)          # UserRegistered | RecordCreated | ...
    timestamp: Mapped[int] = mapped_column(Integer, nullable=False)       # ledger time, seconds since epoch
    principal: Mapped[str] = mapped_column(String(255), nullable=True)    # who performed the operation
    patient: Mapped[str] = mapped_column(String(255), nullable=True, index=True)
    provider: Mapped[str] = mapped_column(String(255), nullable=True)
    record_id: Mapped[int] = mapped_column(Integer, nullable=True)
    prev_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

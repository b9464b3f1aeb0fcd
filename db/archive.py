"""
db/archive.py — Audit Trail Archive
====================================
Copies committed audit events from the in-memory log into the audit_events
table. Works by polling: find the highest sequence already stored for this
log's run, insert everything after it. Running it twice in a row inserts
nothing the second time, and a restarted process archives its own log from 0.

Routes call archive_after_commit(): by then the ledger operation has already
happened, so an archive failure is logged and retried on the next call
instead of being reported to the caller.
"""

import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.audit import AuditLog
from db.models import AuditEventRecord

logger = logging.getLogger("medledger.db.archive")

_archive_lock = asyncio.Lock()


async def archived_count(db: AsyncSession, run_id: str) -> int:
    """Events of this run already stored — also the next sequence to archive."""
    result = await db.execute(
        select(func.max(AuditEventRecord.sequence)).where(AuditEventRecord.run_id == run_id)
    )
    last = result.scalar()
    return 0 if last is None else last + 1


async def archive_pending(db: AsyncSession, audit_log: AuditLog) -> int:
    """Insert every event not yet archived. Returns how many were written."""
    async with _archive_lock:
        since = await archived_count(db, audit_log.run_id)
        pending = audit_log.poll(since=since)
        for event in pending:
            db.add(AuditEventRecord(
                run_id=audit_log.run_id,
                sequence=event.sequence,
                tag=event.tag.value,
                timestamp=event.timestamp,
                principal=event.principal,
                patient=event.patient,
                provider=event.provider,
                record_id=event.record_id,
                prev_hash=event.prev_hash,
                hash=event.hash,
            ))
        await db.commit()

    if pending:
        logger.info(f"Archived {len(pending)} audit event(s) of run {audit_log.run_id[:8]} from #{since}")
    return len(pending)


async def archive_after_commit(db: AsyncSession, audit_log: AuditLog) -> int:
    """archive_pending for routes: failures are logged, never raised."""
    try:
        return await archive_pending(db, audit_log)
    except Exception:
        logger.exception(f"Audit archive failed; {len(audit_log)} event(s) stay in memory for the next attempt")
        try:
            await db.rollback()
        except Exception:
            logger.exception("Rollback after failed audit archive also failed")
        return 0

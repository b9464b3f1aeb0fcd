"""
core/errors.py — Ledger Error Kinds
====================================
Every failed precondition in the ledger raises one of these.
They are normal, recoverable outcomes: the caller gets the kind and a reason,
and the ledger state is left exactly as it was.

Reasons never include record content — only principals, ids and field names.
"""


class LedgerError(Exception):
    """Base class. `kind` is the stable machine-readable name."""

    kind = "LedgerError"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.reason}


# ── Input validation ──────────────────────────────────────────────────────────
class AlreadyRegistered(LedgerError):
    kind = "AlreadyRegistered"


class EmptyField(LedgerError):
    kind = "EmptyField"

    def __init__(self, field: str):
        super().__init__(f"{field} cannot be empty")
        self.field = field


# ── Identity / role mismatches ────────────────────────────────────────────────
class NotRegistered(LedgerError):
    kind = "NotRegistered"


class WrongRole(LedgerError):
    kind = "WrongRole"


class CallerIsProvider(LedgerError):
    kind = "CallerIsProvider"


class CallerNotProvider(LedgerError):
    kind = "CallerNotProvider"


# ── Authorization ─────────────────────────────────────────────────────────────
class NoPermission(LedgerError):
    kind = "NoPermission"


class Unauthorized(LedgerError):
    kind = "Unauthorized"


class NotFound(LedgerError):
    kind = "NotFound"

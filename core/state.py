"""
core/state.py — Ledger State
=============================
Everything the ledger mutates, in one injectable container:
identity registry + permission matrix + record store (which owns the counter).

Tests build a fresh LedgerState per case; the app builds one at startup.
"""

from typing import Optional

from core.consent import PermissionMatrix
from core.identity import IdentityRegistry
from core.records import RecordStore


class LedgerState:

    def __init__(self, registry: Optional[IdentityRegistry] = None):
        self.registry = registry if registry is not None else IdentityRegistry()
        self.permissions = PermissionMatrix(self.registry)
        self.records = RecordStore(self.registry)

"""
core/consent.py — Permission Matrix
====================================
Directed consent edges: patient → provider, True or False.
A missing edge means False — no access.

Only the patient end of an edge may change it, and only to point at a
registered provider. Whether the caller really is that patient is decided by
the access controller; this module only checks the roles involved.

The read rule lives here too, because every module that hands out patient
data must ask the same question:

    can_read(registry, matrix, caller, patient)
"""

import logging
from typing import Dict, Tuple

from core.errors import CallerIsProvider, NotRegistered, WrongRole
from core.identity import IdentityRegistry

logger = logging.getLogger("medledger.consent")


class PermissionMatrix:

    def __init__(self, registry: IdentityRegistry):
        self._registry = registry
        self._edges: Dict[Tuple[str, str], bool] = {}

    def validate_grant(self, patient: str, provider: str):
        """Raise the first failing precondition for changing (patient, provider)."""
        caller = self._registry.get(patient)
        if caller is None:
            raise NotRegistered(f"Caller {patient} is not registered")
        if caller.is_provider:
            raise CallerIsProvider("Providers cannot manage access")
        target = self._registry.get(provider)
        if target is None:
            raise NotRegistered(f"Provider {provider} is not registered")
        if not target.is_provider:
            raise WrongRole(f"{provider} is not a provider")

    def set_permission(self, patient: str, provider: str, grant: bool):
        """Overwrite the edge unconditionally — repeating a value is allowed."""
        self.validate_grant(patient, provider)
        self._edges[(patient, provider)] = bool(grant)
        logger.info(f"Permission {patient} → {provider} set to {bool(grant)}")

    def check(self, patient: str, provider: str) -> bool:
        return self._edges.get((patient, provider), False)


def can_read(registry: IdentityRegistry, matrix: PermissionMatrix, caller: str, patient: str) -> bool:
    """
    Read rule for a patient's records:
    - the patient themself: always
    - a registered provider: only while the edge (patient, provider) is True
    - anyone else: never
    Authorship gives no extra right — a revoked provider is locked out too.
    """
    if caller == patient:
        return True
    identity = registry.get(caller)
    if identity is not None and identity.is_provider and matrix.check(patient, caller):
        return True
    logger.warning(f"Read DENIED: {caller} → records of {patient}")
    return False

"""
core/identity.py — Identity Registry
=====================================
One profile per principal: display name, contact and role (patient or provider).
Profiles are created once and never change afterwards — there is no
role-change operation.

Lookups return None for unknown principals instead of an empty profile,
so "not registered" can never be mistaken for real data.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from core.errors import AlreadyRegistered, EmptyField

logger = logging.getLogger("medledger.identity")


class Role(str, Enum):
    PATIENT = "patient"
    PROVIDER = "provider"


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    principal: str
    name: str
    contact: str
    role: Role
    is_registered: bool = True

    @property
    def is_provider(self) -> bool:
        return self.role == Role.PROVIDER


class IdentityRegistry:
    """In-memory registry keyed by principal."""

    def __init__(self):
        self._identities: Dict[str, Identity] = {}

    def validate_registration(self, principal: str, name: str, contact: str):
        """Raise the first failing registration precondition, mutate nothing."""
        if principal in self._identities:
            raise AlreadyRegistered(f"{principal} is already registered")
        if not name:
            raise EmptyField("name")
        if not contact:
            raise EmptyField("contact")

    def register(self, principal: str, name: str, contact: str, is_provider: bool) -> Identity:
        self.validate_registration(principal, name, contact)
        identity = Identity(
            principal=principal,
            name=name,
            contact=contact,
            role=Role.PROVIDER if is_provider else Role.PATIENT,
        )
        self._identities[principal] = identity
        logger.info(f"Registered {identity.role.value} {principal}")
        return identity

    def get(self, principal: str) -> Optional[Identity]:
        return self._identities.get(principal)

    def __len__(self) -> int:
        return len(self._identities)

import pytest

from core.audit import AuditLog
from core.state import LedgerState
from modules.health import AccessController

ADMIN = "0xadmin"
PATIENT = "0xpatient_a"
PROVIDER = "0xprovider_b"
STRANGER = "0xstranger_c"


class FakeClock:
    """Deterministic ledger time; advance() moves it forward."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return AccessController(LedgerState(), AuditLog(), admin=ADMIN, clock=clock)


@pytest.fixture
def enrolled(ledger):
    """Patient A and provider B registered, no access granted yet."""
    ledger.register_user(PATIENT, "Alice", "alice@example.org", False)
    ledger.register_user(PROVIDER, "Dr. Bob", "bob@clinic.example.org", True)
    return ledger


@pytest.fixture
def consented(enrolled):
    """As `enrolled`, plus A has granted B access."""
    enrolled.manage_access(PATIENT, PROVIDER, True)
    return enrolled

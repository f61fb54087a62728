"""
Shared fixtures for adversarial tests.

Provides a store that widens the check-then-write race window so
concurrent provisioning attempts are guaranteed to all pass the
uniqueness guard before any of them writes.
"""

import threading

import pytest

from admin_provisioner.adapters.repository.memory import InMemoryAccountStore
from admin_provisioner.domain.models import Account

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


class RacingAccountStore(InMemoryAccountStore):
    """
    In-memory store whose lookups block until every racer has looked up.

    This forces the worst-case interleaving: all attempts see an empty
    store, then all attempts write.
    """

    def __init__(self, racers: int) -> None:
        super().__init__()
        self._barrier = threading.Barrier(racers, timeout=10)

    def find_by_email_or_username(self, email: str, username: str) -> Account | None:
        found = super().find_by_email_or_username(email, username)
        self._barrier.wait()
        return found


@pytest.fixture
def racing_store_factory():
    """Build a RacingAccountStore for a given number of concurrent attempts."""
    return RacingAccountStore

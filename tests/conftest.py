"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Fast bcrypt hashing (minimum cost factor)
- In-memory account store
"""

import pytest

from admin_provisioner.adapters.repository.memory import InMemoryAccountStore
from admin_provisioner.domain.hashing import BcryptSecretHasher


@pytest.fixture
def fast_hasher() -> BcryptSecretHasher:
    """bcrypt hasher at the minimum cost factor to keep tests fast."""
    return BcryptSecretHasher(rounds=4)


@pytest.fixture
def memory_store() -> InMemoryAccountStore:
    """Fresh in-memory account store for each test."""
    return InMemoryAccountStore()

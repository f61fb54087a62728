"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at DATABASE_URL; tests are skipped otherwise.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from admin_provisioner.adapters.repository.postgres import PostgresAccountStore
from factories import open_test_pool

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture
def store(pool: ConnectionPool) -> PostgresAccountStore:
    """Create store instance for each test."""
    return PostgresAccountStore(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean accounts table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield

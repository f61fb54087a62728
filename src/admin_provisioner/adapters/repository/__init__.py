"""Repository adapters - Account store implementations."""

from .memory import InMemoryAccountStore
from .postgres import PostgresAccountStore, open_pool, run_migrations

__all__ = ["InMemoryAccountStore", "PostgresAccountStore", "open_pool", "run_migrations"]

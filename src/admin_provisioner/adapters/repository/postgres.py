"""
PostgreSQL repository adapter - Implements AccountStore protocol.

This module provides the PostgreSQL implementation of the domain's
account store port using psycopg3 with raw SQL.

Error Translation:
-----------------
psycopg exceptions never cross into the domain. Every operation runs
inside _translated_errors(), which maps them onto domain exceptions:

1. **UniqueViolation**: A unique index on LOWER(email) or LOWER(username)
   rejected the insert (concurrent writer won). The violated index name
   identifies the field.

2. **UndefinedTable**: The accounts table is missing - migrations have
   not been applied.

3. **OperationalError**: Connection refused, authentication failure or
   pool timeout (PoolTimeout is an OperationalError subclass).

Anything else becomes a plain AccountStoreError carrying the driver message.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg
from psycopg import errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from admin_provisioner.config.settings import Settings
from admin_provisioner.domain.exceptions import (
    AccountStoreError,
    SchemaNotFound,
    StoreUnreachable,
    UniqueConstraintViolated,
)
from admin_provisioner.domain.models import Account, NewAccount
from admin_provisioner.domain.ports import Role

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent.parent / "migrations"

# Unique index name -> colliding field (see migrations/001_create_accounts.sql)
CONSTRAINT_FIELDS = {
    "accounts_email_lower_key": "email",
    "accounts_username_lower_key": "username",
}


def field_for_constraint(constraint_name: str | None) -> str | None:
    """Return the field guarded by a unique index, or None if unknown."""
    return CONSTRAINT_FIELDS.get(constraint_name or "")


def translate_error(exc: psycopg.Error) -> AccountStoreError:
    """Map a psycopg exception onto the domain's store exceptions."""
    if isinstance(exc, errors.UniqueViolation):
        return UniqueConstraintViolated(field_for_constraint(exc.diag.constraint_name), str(exc))
    if isinstance(exc, errors.UndefinedTable):
        return SchemaNotFound(str(exc))
    if isinstance(exc, psycopg.OperationalError):
        return StoreUnreachable(str(exc))
    return AccountStoreError(str(exc))


@contextmanager
def _translated_errors() -> Iterator[None]:
    try:
        yield
    except psycopg.Error as exc:
        translated = translate_error(exc)
        logger.warning("Database error translated to %s: %s", type(translated).__name__, exc)
        raise translated from exc


def _to_account(row: dict) -> Account:
    return Account(
        id=str(row["id"]),
        email=row["email"],
        username=row["username"],
        role=Role(row["role"]),
        is_active=row["is_active"],
        created_at=row["created_at"],
    )


class PostgresAccountStore:
    """
    Implements AccountStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email_or_username(self, email: str, username: str) -> Account | None:
        """
        Find an account whose email or username collides, case-insensitively.

        Rows matching the email sort first, so an email collision is
        reported even when a different account holds the username.

        Args:
            email: Lower-cased email address
            username: Lower-cased username

        Returns:
            The colliding account, or None
        """
        sql = """
            SELECT id, email, username, role, is_active, created_at
            FROM accounts
            WHERE LOWER(email) = %(email)s OR LOWER(username) = %(username)s
            ORDER BY (LOWER(email) = %(email)s) DESC
            LIMIT 1
        """

        with _translated_errors():
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, {"email": email, "username": username})
                row = cursor.fetchone()

        return _to_account(row) if row is not None else None

    def create(self, account: NewAccount) -> Account:
        """
        Insert a new account in a single statement.

        The database assigns id and created_at. The unique indexes on
        LOWER(email) and LOWER(username) make the insert the final
        authority on uniqueness.

        Args:
            account: Fields to insert (email already lower-cased)

        Returns:
            The created account's public fields
        """
        sql = """
            INSERT INTO accounts (email, username, credential_hash, role, is_active, created_at)
            VALUES (%s, %s, %s, %s, %s, NOW())
            RETURNING id, email, username, role, is_active, created_at
        """

        with _translated_errors():
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(
                    sql,
                    (
                        account.email,
                        account.username,
                        account.credential_hash,
                        account.role.value,
                        account.is_active,
                    ),
                )
                row = cursor.fetchone()
                conn.commit()

        return _to_account(row)


@contextmanager
def open_pool(settings: Settings) -> Iterator[ConnectionPool]:
    """
    Open a connection pool for the duration of one provisioning run.

    With min_size=0 (the default) no connection is attempted until the
    first store operation, so candidates rejected by policy never touch
    the database. The pool is closed on every exit path.
    """
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
        open=False,
    )
    pool.open(wait=False)
    try:
        yield pool
    finally:
        pool.close()
        logger.debug("Database connection pool closed")


def run_migrations(pool: ConnectionPool, migrations_dir: Path | None = None) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
        migrations_dir: Override for the bundled migrations directory

    Raises:
        AccountStoreError: If a migration fails (translated driver error)
    """
    migrations_dir = migrations_dir or MIGRATIONS_DIR

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        sql_content = sql_file.read_text()

        with _translated_errors():
            with pool.connection() as conn:
                conn.execute(sql_content)
                # pool.connection() commits on clean exit

        logger.info(f"Migration complete: {sql_file.name}")

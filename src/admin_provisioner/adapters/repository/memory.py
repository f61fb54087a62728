"""
In-memory repository adapter - Implements AccountStore protocol.

Dictionary-backed store for embedding the provisioning pipeline without
a database (tests, dry runs). Uniqueness is enforced atomically under a
lock, mirroring the unique indexes of the PostgreSQL schema.
"""

import threading
import uuid
from datetime import datetime, timezone

from admin_provisioner.domain.exceptions import UniqueConstraintViolated
from admin_provisioner.domain.models import Account, NewAccount


class InMemoryAccountStore:
    """
    Implements AccountStore protocol in process memory.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}
        self._hashes: dict[str, str] = {}

    def find_by_email_or_username(self, email: str, username: str) -> Account | None:
        with self._lock:
            accounts = list(self._accounts.values())

        for account in accounts:
            if account.email.lower() == email:
                return account
        for account in accounts:
            if account.username.lower() == username:
                return account
        return None

    def create(self, account: NewAccount) -> Account:
        with self._lock:
            existing = self._accounts.values()
            if any(e.email.lower() == account.email.lower() for e in existing):
                raise UniqueConstraintViolated("email")
            if any(e.username.lower() == account.username.lower() for e in existing):
                raise UniqueConstraintViolated("username")

            created = Account(
                id=str(uuid.uuid4()),
                email=account.email,
                username=account.username,
                role=account.role,
                is_active=account.is_active,
                created_at=datetime.now(timezone.utc),
            )
            self._accounts[created.id] = created
            self._hashes[created.id] = account.credential_hash
            return created

    def credential_hash(self, account_id: str) -> str | None:
        """Stored hash for an account; exposed for login-path verification."""
        with self._lock:
            return self._hashes.get(account_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

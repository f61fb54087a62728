"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, plus the enumerations shared across the pipeline.
Adapters implement these protocols.
"""

from enum import Enum
from typing import Protocol

from .models import Account, NewAccount


class Role(str, Enum):
    """
    Account roles.

    The provisioning pipeline only ever writes ADMIN; STANDARD accounts
    come from the regular signup path.
    """

    STANDARD = "STANDARD"
    ADMIN = "ADMIN"


class ErrorKind(str, Enum):
    """
    Stable error kinds returned by ProvisioningService.provision().

    Values are part of the operator-facing contract (--json output) and
    must not change.
    """

    # Validation
    INVALID_EMAIL_FORMAT = "invalid_email_format"
    INVALID_USERNAME_FORMAT = "invalid_username_format"
    INVALID_USERNAME_LENGTH = "invalid_username_length"
    PASSWORD_TOO_SHORT = "password_too_short"
    PASSWORD_MISSING_UPPERCASE = "password_missing_uppercase"
    PASSWORD_MISSING_LOWERCASE = "password_missing_lowercase"
    PASSWORD_MISSING_DIGIT = "password_missing_digit"
    PASSWORD_MISSING_SPECIAL_CHAR = "password_missing_special_char"

    # Conflict
    EMAIL_TAKEN = "email_taken"
    USERNAME_TAKEN = "username_taken"

    # Infrastructure
    STORE_UNAVAILABLE = "store_unavailable"
    SCHEMA_MISSING = "schema_missing"
    UNKNOWN_STORE_ERROR = "unknown_store_error"

    @property
    def is_validation(self) -> bool:
        return self in _VALIDATION_KINDS

    @property
    def is_conflict(self) -> bool:
        return self in (ErrorKind.EMAIL_TAKEN, ErrorKind.USERNAME_TAKEN)

    @property
    def is_infrastructure(self) -> bool:
        return self in (
            ErrorKind.STORE_UNAVAILABLE,
            ErrorKind.SCHEMA_MISSING,
            ErrorKind.UNKNOWN_STORE_ERROR,
        )


_VALIDATION_KINDS = frozenset(
    {
        ErrorKind.INVALID_EMAIL_FORMAT,
        ErrorKind.INVALID_USERNAME_FORMAT,
        ErrorKind.INVALID_USERNAME_LENGTH,
        ErrorKind.PASSWORD_TOO_SHORT,
        ErrorKind.PASSWORD_MISSING_UPPERCASE,
        ErrorKind.PASSWORD_MISSING_LOWERCASE,
        ErrorKind.PASSWORD_MISSING_DIGIT,
        ErrorKind.PASSWORD_MISSING_SPECIAL_CHAR,
    }
)


class AccountStore(Protocol):
    """Port interface for account persistence."""

    def find_by_email_or_username(self, email: str, username: str) -> Account | None:
        """
        Find an account colliding with either identifier.

        Comparison is case-insensitive on both columns. When one account
        matches the email and another matches the username, the email
        match is returned.

        Args:
            email: Lower-cased email address
            username: Lower-cased username

        Returns:
            The colliding account, or None if both identifiers are free

        Raises:
            StoreUnreachable: If the store cannot be reached
            SchemaNotFound: If the accounts table does not exist
            AccountStoreError: For any other store failure
        """
        ...

    def create(self, account: NewAccount) -> Account:
        """
        Insert a new account.

        The store assigns id and created_at. Uniqueness of email and
        username (case-insensitive) is enforced here, atomically.

        Args:
            account: Fields of the account to insert

        Returns:
            The created account's public fields

        Raises:
            UniqueConstraintViolated: If email or username is already taken
            StoreUnreachable: If the store cannot be reached
            SchemaNotFound: If the accounts table does not exist
            AccountStoreError: For any other store failure
        """
        ...


class SecretHasher(Protocol):
    """Port interface for one-way secret derivation."""

    def hash(self, secret: str) -> str:
        """Derive a salted, storable hash of the secret."""
        ...

    def verify(self, secret: str, credential_hash: str) -> bool:
        """Check a secret against a hash produced by hash()."""
        ...

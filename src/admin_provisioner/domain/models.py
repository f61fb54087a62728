"""
Domain models - Candidate input, account records and provisioning results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ports import ErrorKind, Role


@dataclass(frozen=True)
class Candidate:
    """
    Caller-supplied identity awaiting provisioning.

    The secret is excluded from repr() so a candidate can appear in logs
    and tracebacks without leaking it.
    """

    email: str
    username: str
    secret: str = field(repr=False)

    @classmethod
    def from_input(cls, email: str, username: str, secret: str) -> "Candidate":
        """Build a candidate from operator input, stripping identifier whitespace."""
        return cls(email=email.strip(), username=username.strip(), secret=secret)

    @property
    def normalized_email(self) -> str:
        return self.email.lower()

    @property
    def normalized_username(self) -> str:
        return self.username.lower()


@dataclass(frozen=True)
class NewAccount:
    """Fields handed to AccountStore.create()."""

    email: str
    username: str
    credential_hash: str = field(repr=False)
    role: "Role"
    is_active: bool = True


@dataclass(frozen=True)
class Account:
    """Public fields of a persisted account. Never carries the credential hash."""

    id: str
    email: str
    username: str
    role: "Role"
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class PolicyViolation:
    """One failed policy check."""

    kind: "ErrorKind"
    message: str


@dataclass(frozen=True)
class ProvisioningFailure:
    """
    Failure returned by ProvisioningService.provision().

    cause carries the underlying store error text for infrastructure
    failures so operators can diagnose them; it is None otherwise.
    """

    kind: "ErrorKind"
    message: str
    cause: str | None = None


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of one provisioning attempt: exactly one of account/failure is set."""

    account: Account | None = None
    failure: ProvisioningFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, account: Account) -> "ProvisionResult":
        return cls(account=account)

    @classmethod
    def failed(
        cls, kind: "ErrorKind", message: str, cause: str | None = None
    ) -> "ProvisionResult":
        return cls(failure=ProvisioningFailure(kind=kind, message=message, cause=cause))

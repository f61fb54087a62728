"""
CLI output models.

Pydantic models for the operator-facing success and error payloads,
rendered either as JSON (--json) or as human-readable text.
"""

import re
from datetime import datetime

from pydantic import BaseModel

from admin_provisioner.domain.models import Account, ProvisioningFailure
from admin_provisioner.domain.ports import ErrorKind, Role

_PASSWORD_IN_URL = re.compile(r"(://[^:/@]+:)[^@]*(@)")
# key=value conninfo and URL query parameters; values may be single-quoted
_PASSWORD_PARAM = re.compile(r"(\bpassword\s*=\s*)('(?:[^'\\]|\\.)*'|[^\s&]*)", re.IGNORECASE)


def mask_database_url(url: str) -> str:
    """Hide the password in a connection URL or key/value conninfo string."""
    masked = _PASSWORD_IN_URL.sub(r"\1****\2", url)
    return _PASSWORD_PARAM.sub(r"\1****", masked)


class AccountPayload(BaseModel):
    """Public fields of a provisioned account."""

    id: str
    email: str
    username: str
    role: Role
    is_active: bool
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountPayload":
        return cls(
            id=account.id,
            email=account.email,
            username=account.username,
            role=account.role,
            is_active=account.is_active,
            created_at=account.created_at,
        )

    def render(self) -> str:
        return "\n".join(
            [
                "Admin user created successfully!",
                "",
                "User Details:",
                f"  ID:       {self.id}",
                f"  Email:    {self.email}",
                f"  Username: {self.username}",
                f"  Role:     {self.role.value}",
                f"  Active:   {'Yes' if self.is_active else 'No'}",
                f"  Created:  {self.created_at.isoformat()}",
                "",
                "You can now login with these credentials!",
            ]
        )


class ErrorPayload(BaseModel):
    """Structured provisioning error with an operator remediation hint."""

    kind: ErrorKind
    message: str
    cause: str | None = None
    hint: str | None = None

    @classmethod
    def from_failure(cls, failure: ProvisioningFailure, database_url: str) -> "ErrorPayload":
        return cls(
            kind=failure.kind,
            message=failure.message,
            cause=failure.cause,
            hint=remediation_hint(failure.kind, database_url),
        )

    def render(self) -> str:
        lines = [f"Error: {self.message}"]
        if self.cause:
            lines.append(f"   Cause: {self.cause}")
        if self.hint:
            lines.extend(f"   {line}" for line in self.hint.splitlines())
        return "\n".join(lines)


def remediation_hint(kind: ErrorKind, database_url: str) -> str | None:
    """Operator guidance for infrastructure and conflict failures."""
    if kind.is_validation:
        return None
    if kind.is_conflict:
        return "A user with this email or username already exists."
    if kind == ErrorKind.STORE_UNAVAILABLE:
        return (
            "Cannot connect to database. Please check your DATABASE_URL.\n"
            f"Current DATABASE_URL: {mask_database_url(database_url)}"
        )
    if kind == ErrorKind.SCHEMA_MISSING:
        return (
            "Database tables do not exist yet.\n"
            "Re-run with --migrate to apply the bundled schema migrations."
        )
    if kind.is_infrastructure:
        return "See the cause above; the account was not created."
    return None

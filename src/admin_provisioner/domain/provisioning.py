"""
Provisioning domain service - Administrator account creation pipeline.

This module contains the orchestration of out-of-band administrator
provisioning. Stages run strictly in order and the pipeline stops at the
first failure:

    PolicyValidator   (pure, no store access)
        -> UniquenessGuard  (one store read)
        -> SecretHasher     (CPU-bound, no I/O)
        -> AccountStore.create  (one store write)

Failures are returned as ProvisionResult values, never raised. The
account is written last and in a single insert, so a failed attempt
never leaves a partially initialized account behind.

Race Window
===========

Two concurrent attempts for the same identity can both pass the
uniqueness guard. The store's unique indexes reject the loser at write
time, and that rejection is reported with the same conflict kinds the
guard uses (EMAIL_TAKEN / USERNAME_TAKEN).

No retries happen here: provisioning is a single deliberate operator
action, so transient store errors are surfaced as-is.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import (
    AccountStoreError,
    SchemaNotFound,
    StoreUnreachable,
    UniqueConstraintViolated,
)
from .hashing import BcryptSecretHasher
from .models import Candidate, NewAccount, ProvisionResult
from .policy import PolicyValidator
from .ports import AccountStore, ErrorKind, Role, SecretHasher
from .uniqueness import UniquenessGuard

logger = logging.getLogger(__name__)


_MESSAGES = {
    ErrorKind.EMAIL_TAKEN: "User with email {email} already exists",
    ErrorKind.USERNAME_TAKEN: "Username {username} is already taken",
    ErrorKind.STORE_UNAVAILABLE: "Cannot connect to the account store",
    ErrorKind.SCHEMA_MISSING: "Account store tables do not exist yet",
    ErrorKind.UNKNOWN_STORE_ERROR: "Unexpected account store error",
}

_CONFLICT_FIELDS = {
    "email": ErrorKind.EMAIL_TAKEN,
    "username": ErrorKind.USERNAME_TAKEN,
}


@dataclass
class ProvisioningService:
    """
    Domain service for administrator provisioning.

    The store is injected and owned by the caller, which is responsible
    for opening and closing it around the provision() call.
    """

    store: AccountStore
    validator: PolicyValidator = field(default_factory=PolicyValidator)
    hasher: SecretHasher = field(default_factory=BcryptSecretHasher)

    def provision(self, candidate: Candidate) -> ProvisionResult:
        """
        Create an active ADMIN account for the candidate.

        Args:
            candidate: Email, username and plaintext secret to provision

        Returns:
            ProvisionResult with the created account's public fields on
            success, or a ProvisioningFailure naming the error kind
        """
        violation = self.validator.validate(candidate)
        if violation is not None:
            logger.info("Candidate rejected by policy: %s", violation.kind.value)
            return ProvisionResult.failed(violation.kind, violation.message)

        try:
            conflict = UniquenessGuard(self.store).check_unique(candidate)
        except Exception as exc:
            return self._store_failure(exc, candidate)
        if conflict is not None:
            logger.info("Candidate rejected: %s", conflict.value)
            return self._conflict(conflict, candidate)

        logger.info("Hashing password...")
        new_account = NewAccount(
            email=candidate.normalized_email,
            username=candidate.username,
            credential_hash=self.hasher.hash(candidate.secret),
            role=Role.ADMIN,
            is_active=True,
        )

        logger.info("Creating account %s in store...", new_account.email)
        try:
            account = self.store.create(new_account)
        except Exception as exc:
            return self._store_failure(exc, candidate)

        logger.info("Admin account %s created (id=%s)", account.username, account.id)
        return ProvisionResult.success(account)

    def _conflict(self, kind: ErrorKind, candidate: Candidate) -> ProvisionResult:
        message = _MESSAGES[kind].format(email=candidate.email, username=candidate.username)
        return ProvisionResult.failed(kind, message)

    def _store_failure(self, exc: Exception, candidate: Candidate) -> ProvisionResult:
        """Map a store exception onto the error taxonomy."""
        if isinstance(exc, UniqueConstraintViolated):
            # Lost the race against a concurrent writer
            kind = _CONFLICT_FIELDS.get(exc.field or "", ErrorKind.EMAIL_TAKEN)
            logger.warning("Write-time uniqueness violation (%s)", kind.value)
            return self._conflict(kind, candidate)

        if isinstance(exc, StoreUnreachable):
            kind = ErrorKind.STORE_UNAVAILABLE
        elif isinstance(exc, SchemaNotFound):
            kind = ErrorKind.SCHEMA_MISSING
        else:
            kind = ErrorKind.UNKNOWN_STORE_ERROR

        if isinstance(exc, AccountStoreError):
            logger.error("Account store failure (%s): %s", kind.value, exc)
        else:
            logger.exception("Unexpected error from account store")
        return ProvisionResult.failed(kind, _MESSAGES[kind], cause=str(exc) or repr(exc))

"""
Credential policy - Ordered checks over a candidate's identity and secret.

Checks run in a fixed order so the first reported violation is
deterministic for a given candidate:

1. Email shape            -> INVALID_EMAIL_FORMAT
2. Username charset       -> INVALID_USERNAME_FORMAT
3. Username length (3-20) -> INVALID_USERNAME_LENGTH
4. Secret minimum length  -> PASSWORD_TOO_SHORT
5. Uppercase letter       -> PASSWORD_MISSING_UPPERCASE
6. Lowercase letter       -> PASSWORD_MISSING_LOWERCASE
7. Digit                  -> PASSWORD_MISSING_DIGIT
8. Special character      -> PASSWORD_MISSING_SPECIAL_CHAR

The minimum secret length is configuration, not a constant: deployments
have run with both 8 and 12.
"""

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .models import Candidate, PolicyViolation
from .ports import ErrorKind

DEFAULT_MIN_SECRET_LENGTH = 8
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
SPECIAL_CHARACTERS = "!@#$%^&*(),.?\":{}|<>_-+=[]\\/"

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_USERNAME_RE = re.compile(r"[A-Za-z0-9_-]+")
_UPPERCASE_RE = re.compile(r"[A-Z]")
_LOWERCASE_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


@dataclass(frozen=True)
class PolicyValidator:
    """Pure, side-effect free validator for provisioning candidates."""

    min_secret_length: int = DEFAULT_MIN_SECRET_LENGTH

    def __post_init__(self) -> None:
        if self.min_secret_length < 1:
            raise ValueError("min_secret_length must be at least 1")

    def validate(self, candidate: Candidate) -> PolicyViolation | None:
        """Return the first violated rule, or None if the candidate is valid."""
        return next(self._check(candidate), None)

    def violations(self, candidate: Candidate) -> list[PolicyViolation]:
        """Return every violated rule, in check order."""
        return list(self._check(candidate))

    def requirements(self) -> list[str]:
        """Human-readable password requirements for operator help output."""
        return [
            f"Minimum {self.min_secret_length} characters",
            "At least one uppercase letter",
            "At least one lowercase letter",
            "At least one number",
            "At least one special character",
        ]

    def _check(self, candidate: Candidate) -> Iterator[PolicyViolation]:
        for passes, kind, message in self._rules():
            if not passes(candidate):
                yield PolicyViolation(kind=kind, message=message)

    def _rules(self) -> list[tuple[Callable[[Candidate], bool], ErrorKind, str]]:
        return [
            (
                lambda c: _EMAIL_RE.fullmatch(c.email) is not None,
                ErrorKind.INVALID_EMAIL_FORMAT,
                "Invalid email format",
            ),
            (
                lambda c: _USERNAME_RE.fullmatch(c.username) is not None,
                ErrorKind.INVALID_USERNAME_FORMAT,
                "Username can only contain letters, numbers, underscores, and hyphens",
            ),
            (
                lambda c: USERNAME_MIN_LENGTH <= len(c.username) <= USERNAME_MAX_LENGTH,
                ErrorKind.INVALID_USERNAME_LENGTH,
                f"Username must be between {USERNAME_MIN_LENGTH} and "
                f"{USERNAME_MAX_LENGTH} characters",
            ),
            (
                lambda c: len(c.secret) >= self.min_secret_length,
                ErrorKind.PASSWORD_TOO_SHORT,
                f"Password must be at least {self.min_secret_length} characters",
            ),
            (
                lambda c: _UPPERCASE_RE.search(c.secret) is not None,
                ErrorKind.PASSWORD_MISSING_UPPERCASE,
                "Password must contain at least one uppercase letter",
            ),
            (
                lambda c: _LOWERCASE_RE.search(c.secret) is not None,
                ErrorKind.PASSWORD_MISSING_LOWERCASE,
                "Password must contain at least one lowercase letter",
            ),
            (
                lambda c: _DIGIT_RE.search(c.secret) is not None,
                ErrorKind.PASSWORD_MISSING_DIGIT,
                "Password must contain at least one number",
            ),
            (
                lambda c: _SPECIAL_RE.search(c.secret) is not None,
                ErrorKind.PASSWORD_MISSING_SPECIAL_CHAR,
                "Password must contain at least one special character",
            ),
        ]

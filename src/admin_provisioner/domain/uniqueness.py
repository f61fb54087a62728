"""
Uniqueness guard - Optimistic pre-write check for identifier collisions.

This check is not atomic with the subsequent write. Two concurrent
attempts can both pass it; the store's unique indexes decide the winner
and the provisioning service translates the loser's violation.
"""

import logging
from dataclasses import dataclass

from .models import Candidate
from .ports import AccountStore, ErrorKind

logger = logging.getLogger(__name__)


@dataclass
class UniquenessGuard:
    """Classifies collisions between a candidate and existing accounts."""

    store: AccountStore

    def check_unique(self, candidate: Candidate) -> ErrorKind | None:
        """
        Look up any account sharing the candidate's email or username.

        Email collisions are reported in preference to username collisions.

        Returns:
            EMAIL_TAKEN, USERNAME_TAKEN, or None if both identifiers are free

        Raises:
            AccountStoreError: Propagated from the store lookup
        """
        email = candidate.normalized_email
        username = candidate.normalized_username

        existing = self.store.find_by_email_or_username(email, username)
        if existing is None:
            return None

        if existing.email.lower() == email:
            logger.debug("Email %s already belongs to account %s", email, existing.id)
            return ErrorKind.EMAIL_TAKEN
        if existing.username.lower() == username:
            logger.debug("Username %s already belongs to account %s", username, existing.id)
            return ErrorKind.USERNAME_TAKEN

        # Store returned a row matching neither identifier; the write-time
        # constraint still guards the insert.
        logger.warning("Lookup returned non-colliding account %s", existing.id)
        return None

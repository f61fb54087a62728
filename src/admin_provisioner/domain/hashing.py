"""
Secret hashing - bcrypt derivation of storable credentials.
"""

from dataclasses import dataclass

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt only consumes the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_BYTES]


@dataclass(frozen=True)
class BcryptSecretHasher:
    """
    Salted bcrypt hasher with a configurable work factor.

    A fresh salt is generated on every hash() call, so hashing the same
    secret twice yields two different values that both verify.
    """

    rounds: int = DEFAULT_ROUNDS

    def __post_init__(self) -> None:
        if not 4 <= self.rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")

    def hash(self, secret: str) -> str:
        return bcrypt.hashpw(_encode(secret), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, secret: str, credential_hash: str) -> bool:
        """Constant-time check of a secret against a stored bcrypt hash."""
        try:
            return bcrypt.checkpw(_encode(secret), credential_hash.encode())
        except ValueError:
            # Malformed hash (not produced by hash())
            return False

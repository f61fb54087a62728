"""
Domain layer - Pure business logic with zero framework imports.

This package contains the administrator provisioning pipeline: credential
policy, uniqueness arbitration, secret hashing and the orchestrating
service. It defines its own port interfaces for infrastructure
abstraction; storage adapters live in admin_provisioner.adapters.
"""

from .exceptions import (
    AccountStoreError,
    SchemaNotFound,
    StoreUnreachable,
    UniqueConstraintViolated,
)
from .hashing import BcryptSecretHasher
from .models import (
    Account,
    Candidate,
    NewAccount,
    PolicyViolation,
    ProvisioningFailure,
    ProvisionResult,
)
from .policy import PolicyValidator
from .ports import AccountStore, ErrorKind, Role, SecretHasher
from .provisioning import ProvisioningService
from .uniqueness import UniquenessGuard

__all__ = [
    "Account",
    "AccountStore",
    "AccountStoreError",
    "BcryptSecretHasher",
    "Candidate",
    "ErrorKind",
    "NewAccount",
    "PolicyValidator",
    "PolicyViolation",
    "ProvisionResult",
    "ProvisioningFailure",
    "ProvisioningService",
    "Role",
    "SchemaNotFound",
    "SecretHasher",
    "StoreUnreachable",
    "UniqueConstraintViolated",
    "UniquenessGuard",
]

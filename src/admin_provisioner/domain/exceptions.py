"""
Domain exceptions - Semantic error types raised by account store adapters.

Adapters translate driver-specific failures into these types so the
provisioning service can classify them without importing any driver.
None of these escape ProvisioningService.provision(); they are converted
into ProvisioningFailure values there.
"""


class AccountStoreError(Exception):
    """Base class for account store errors (unclassified failures)."""

    pass


class UniqueConstraintViolated(AccountStoreError):
    """A concurrent writer already created an account with this email or username."""

    def __init__(self, field: str | None = None, message: str = "") -> None:
        super().__init__(message or f"unique constraint violated on {field or 'unknown field'}")
        self.field = field


class StoreUnreachable(AccountStoreError):
    """The store could not be reached (connection refused, timeout, auth failure)."""

    pass


class SchemaNotFound(AccountStoreError):
    """The accounts table does not exist - migrations have not been applied."""

    pass

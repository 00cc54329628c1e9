"""
Exceptions raised by the migration toolkit.

Fatal conditions (bad configuration, unreadable input, nothing to reconcile)
stop a run. Store errors are caught per record or per batch and counted.
"""


class MigrationError(Exception):
    """Base class for all migration errors."""
    pass


class ConfigurationError(MigrationError):
    """Raised when store credentials or settings are missing."""
    pass


class InputError(MigrationError):
    """Raised when a legacy export file is missing or malformed."""
    pass


class EmptyStoreError(MigrationError):
    """Raised when reconciliation finds no persisted jobs to repair."""
    pass


class StoreError(MigrationError):
    """Raised when the target store rejects a read or write."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class DuplicateKeyError(StoreError):
    """Raised on a unique-constraint conflict the upsert could not absorb."""
    pass


class MissingColumnError(StoreError):
    """Raised when a write names a column the target schema does not have."""
    pass

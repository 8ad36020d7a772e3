class SyncError(Exception):
    """Base whitelist-sync exception."""


class SchemaError(SyncError):
    """Raised when the store cannot be created or opened."""


class QueryError(SyncError):
    """Raised when a read from the store fails."""


class WriteError(SyncError):
    """Raised when one or more writes to the store fail."""

    def __init__(self, message: str, *, written: int = 0, skipped: int = 0, failed: int = 1):
        super().__init__(message)
        self.written = written
        self.skipped = skipped
        self.failed = failed


class FeatureDisabledError(SyncError):
    """Raised when an operator-list call is made while op syncing is off."""


class CallbackResolutionError(SyncError):
    """Raised by host callbacks when a player reference cannot be resolved."""

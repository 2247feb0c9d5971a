"""Domain-specific exceptions for the expense sharing record stores."""

class ValidationError(ValueError):
    """Raised when a request payload does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when an expense, user or transaction cannot be located."""


class StorageUnavailable(IOError):
    """Raised when the durable medium cannot be read from or written to."""


class SeedUnavailable(StorageUnavailable):
    """Raised when the seed dataset cannot be read during a reset."""

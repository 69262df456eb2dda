"""Error classes the engine distinguishes so callers can pick retry, message or no-op."""


class LingoCoachError(Exception):
    """Base class for engine errors."""


class InvalidInputError(LingoCoachError, ValueError):
    """Rejected input: quality out of range, unusable direction, bad document."""


class NotFoundError(LingoCoachError, LookupError):
    """A referenced item, session or package does not exist."""


class StorageError(LingoCoachError):
    """The store failed; nothing from the failed operation is visible."""

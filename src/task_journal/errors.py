"""Exception hierarchy shared by the store, the importers and the engine."""


class JournalError(Exception):
    """Base exception for journal operations."""
    pass


class ValidationError(JournalError):
    """Raised when an argument is missing, malformed or out of range."""
    pass


class TaskNotFoundError(JournalError):
    """Raised when an operation addresses a task that is not stored."""
    pass


class DuplicateTaskError(JournalError):
    """Raised when creating a task whose ID is already taken."""
    pass


class StorageError(JournalError):
    """Raised when a record file cannot be read or written."""
    pass

"""Errors raised by repository implementations."""


class RepositoryError(Exception):
    """Base class for all repository-related errors."""

    def __init__(self, kind: str, key: str, message: str | None = None) -> None:
        if message is None:
            message = f"{kind} ({key}) repository error"
        super().__init__(message)
        self.kind = kind
        self.key = key


class EntityNotFoundError(RepositoryError):
    """Raised when an aggregate cannot be found in its repository."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(kind, key, f"{kind} ({key}) not found")


class DuplicateEntityError(RepositoryError):
    """Raised when adding an aggregate whose ID is already stored."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(kind, key, f"{kind} ({key}) already exists")


class ConcurrencyConflictError(RepositoryError):
    """Raised when optimistic concurrency check fails."""

    def __init__(self, kind: str, key: str, expected: int, actual: int | None) -> None:
        super().__init__(
            kind,
            key,
            f"{kind} ({key}) version conflict: stored={actual}, expected={expected}",
        )
        self.expected = expected
        self.actual = actual

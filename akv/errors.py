"""akv error types."""

import enum


class ErrorKind(enum.Enum):
    """Classification of a failed backend call."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BACKEND = "backend"


class BackendError(Exception):
    """Base class for failures reported by a storage backend."""

    kind = ErrorKind.BACKEND


class NotFound(BackendError, KeyError):
    """Raised when a key has no live document in the backend."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Key not found: {self.key!r}"


class VersionConflict(BackendError):
    """Raised when a write carries a stale revision.

    Attributes:
        key: The key being written or removed.
        expected: The revision the caller supplied (``None`` means
            "key must not exist").
        actual: The revision currently stored (``None`` if absent).
    """

    kind = ErrorKind.CONFLICT

    def __init__(self, key: object, expected: str | None, actual: str | None) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Revision conflict on {key!r}: expected {expected!r}, found {actual!r}"
        )


def classify(error: BaseException) -> ErrorKind:
    """Map any exception raised by a backend to an ``ErrorKind``."""
    if isinstance(error, BackendError):
        return error.kind
    return ErrorKind.BACKEND

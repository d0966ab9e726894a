"""Custom exceptions for the Melete working memory engine."""

from typing import Optional


class MeleteError(Exception):
    """Base exception for all Melete errors."""

    pass


class ConfigurationError(MeleteError):
    """Configuration loading or validation error."""

    pass


class NotAuthenticatedError(MeleteError):
    """No caller identity could be resolved."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotFoundError(MeleteError):
    """A user or working memory store does not exist."""

    def __init__(self, kind: str, key: Optional[str] = None):
        self.kind = kind
        self.key = key
        message = f"{kind} not found" if key is None else f"{kind} not found: {key}"
        super().__init__(message)


class ValidationError(MeleteError):
    """Input outside the allowed categories, sources or bounds."""

    pass


class ExternalDependencyError(MeleteError):
    """A collaborator (long-term memory server) call failed."""

    pass


class PersistenceError(MeleteError):
    """Session repository read or write failed."""

    pass


class StaleStoreError(PersistenceError):
    """The store changed between read and write (version mismatch)."""

    def __init__(self, store_id: str, expected: int, actual: Optional[int]):
        self.store_id = store_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Store {store_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )

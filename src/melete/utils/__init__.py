"""Shared utilities: exceptions and logging setup."""

from melete.utils.exceptions import (
    ConfigurationError,
    ExternalDependencyError,
    MeleteError,
    NotAuthenticatedError,
    NotFoundError,
    PersistenceError,
    StaleStoreError,
    ValidationError,
)

__all__ = [
    "MeleteError",
    "ConfigurationError",
    "NotAuthenticatedError",
    "NotFoundError",
    "ValidationError",
    "ExternalDependencyError",
    "PersistenceError",
    "StaleStoreError",
]

"""Core engine modules."""

from .exceptions import (
    BaseAppException,
    ConfigurationError,
    DuplicateOperationError,
    RemoteStoreError,
    ValidationError,
)

__all__ = [
    "BaseAppException",
    "ConfigurationError",
    "DuplicateOperationError",
    "RemoteStoreError",
    "ValidationError",
]

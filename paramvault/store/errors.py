from __future__ import annotations


class StoreError(Exception):
    """Base class for store layer errors."""


class NotFoundError(StoreError):
    """Raised when a requested key or version cannot be found."""


class NotSupportedError(StoreError):
    """Raised when the selected backend does not implement an operation."""


class AccessDeniedError(StoreError):
    """Raised when the backend rejects the caller's credentials or permissions.

    Kept apart from BackendError so callers can report it differently.
    """


class BackendError(StoreError):
    """Raised for any other transport or service failure."""


class ValidationError(StoreError):
    """Raised when a parameter path, name, or setting fails validation."""

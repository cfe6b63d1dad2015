"""Structured error types for certstore."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Tag carried by every certstore error."""

    NOT_FOUND = "not_found"
    LOCKED = "locked"
    UNSUPPORTED = "unsupported"
    INVALID_CONFIG = "invalid_config"
    BACKEND = "backend"


class CertStoreError(Exception):
    """Base error for all certstore errors."""

    kind: ClassVar[ErrorKind]


class NotFoundError(CertStoreError):
    """Raised when a key has no stored value."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class LockedError(CertStoreError):
    """Raised when a lease on the key is still active."""

    kind = ErrorKind.LOCKED

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key {key} is already locked")


class UnsupportedError(CertStoreError):
    """Raised for operations this store does not implement."""

    kind = ErrorKind.UNSUPPORTED

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} is not supported: {detail}")


class InvalidConfigError(CertStoreError):
    """Raised when store options fail validation at construction time."""

    kind = ErrorKind.INVALID_CONFIG

    def __init__(self, message: str) -> None:
        super().__init__(message)


class BackendError(CertStoreError):
    """Raised when backend storage operations fail."""

    kind = ErrorKind.BACKEND

    def __init__(self, operation: str, detail: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.detail = detail
        self.cause = cause
        super().__init__(f"Storage backend error during {operation}: {detail}")


class QueryTimeoutError(BackendError):
    """Raised when an operation does not finish within its deadline."""

    def __init__(
        self, operation: str, timeout: float, cause: BaseException | None = None
    ) -> None:
        self.timeout = timeout
        super().__init__(operation, f"timed out after {timeout:g}s", cause)

"""Storage error taxonomy shared by every gallery module.

All failures raised by the storage core are ``StorageError`` instances tagged
with a :class:`StorageErrorKind`. Callers branch on ``error.kind`` instead of
on the concrete class; the subclasses below only pin the kind so existing
call sites can still raise ``ValidationError(...)`` and friends.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class StorageErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    UPLOAD = "UPLOAD_ERROR"
    DOWNLOAD = "DOWNLOAD_ERROR"
    STORAGE = "STORAGE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMITED"
    CANCELLED = "CANCELLED"


class StorageError(Exception):
    """Base class for storage core errors."""

    default_kind = StorageErrorKind.STORAGE

    def __init__(
        self,
        message: str,
        *,
        kind: StorageErrorKind | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.details = details

    @property
    def code(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, message={self.message!r})"


class ValidationError(StorageError):
    """Bad input; raised before any storage side effect."""

    default_kind = StorageErrorKind.VALIDATION


class UploadError(StorageError):
    """The object store rejected a write."""

    default_kind = StorageErrorKind.UPLOAD


class DownloadError(StorageError):
    """Reading from the object store or the catalog failed."""

    default_kind = StorageErrorKind.DOWNLOAD


def not_found(message: str, **details: Any) -> StorageError:
    return StorageError(message, kind=StorageErrorKind.NOT_FOUND, details=details or None)


def permission_denied(message: str, **details: Any) -> StorageError:
    return StorageError(message, kind=StorageErrorKind.PERMISSION_DENIED, details=details or None)


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, StorageError):
        return exc.message
    return str(exc) or type(exc).__name__


__all__ = [
    "DownloadError",
    "StorageError",
    "StorageErrorKind",
    "UploadError",
    "ValidationError",
    "describe_error",
    "not_found",
    "permission_denied",
]

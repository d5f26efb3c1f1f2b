"""Shared abstractions used across gallery modules."""

from .exceptions import (
    DownloadError,
    StorageError,
    StorageErrorKind,
    UploadError,
    ValidationError,
    describe_error,
    not_found,
    permission_denied,
)

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

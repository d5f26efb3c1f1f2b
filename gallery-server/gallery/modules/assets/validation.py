"""Upload validation and object path generation.

Nothing in this module touches storage; a file that fails validation never
reaches the object store.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, Iterable

from gallery.core.config import MIB
from gallery.modules.common import ValidationError

from .models import IncomingFile

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if not self.valid:
            raise ValidationError(
                "File validation failed: " + "; ".join(self.errors),
                details={"errors": list(self.errors)},
            )


class FileValidator:
    def __init__(self, max_file_size: int, allowed_mime_types: Iterable[str]) -> None:
        self.max_file_size = max_file_size
        self.allowed_mime_types = tuple(allowed_mime_types)

    def validate(self, file: IncomingFile) -> ValidationResult:
        errors: list[str] = []
        mime = (file.content_type or "").lower()

        if file.size == 0:
            errors.append("File is empty")
        if file.size > self.max_file_size:
            errors.append(f"File size exceeds {_format_limit(self.max_file_size)} limit")
        if mime not in self.allowed_mime_types:
            errors.append(
                f"File type {mime or 'unknown'} is not supported. "
                f"Allowed types: {', '.join(self.allowed_mime_types)}"
            )
        if not mime.startswith("image/"):
            errors.append("File is not an image")
        if _has_traversal(file.file_name):
            errors.append("File name contains invalid characters")

        return ValidationResult(valid=not errors, errors=errors)


def sanitize_segment(value: str) -> str:
    cleaned = _REPEATED_UNDERSCORES.sub("_", _UNSAFE_CHARS.sub("_", value or ""))
    cleaned = cleaned.strip("_")
    # "." and ".." must never survive as a path segment
    if not cleaned or set(cleaned) == {"."}:
        return "file"
    return cleaned


def generate_storage_path(
    file_name: str,
    user_id: str,
    base_path: str,
    *,
    clock: Callable[[], float] = time.time,
) -> str:
    timestamp = int(clock() * 1000)
    token = secrets.token_hex(6)
    return f"{base_path}/{sanitize_segment(user_id)}/{timestamp}-{token}-{sanitize_segment(file_name)}"


def thumbnail_path_for(storage_path: str, base_path: str, thumbnails_dir: str) -> str:
    path = PurePosixPath(storage_path)
    return f"{base_path}/{thumbnails_dir}/{path.parent.name}/{path.stem}_thumb.jpg"


def _has_traversal(file_name: str) -> bool:
    return ".." in file_name or "/" in file_name or "\\" in file_name


def _format_limit(size: int) -> str:
    if size % MIB == 0:
        return f"{size // MIB}MB"
    return f"{size} bytes"

"""Filesystem-backed object store.

Objects are regular files under ``root / bucket``; the object path maps to the
relative file path. Listing is recursive and ordered, and ``created_at`` is the
file's modification time.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence
from urllib.parse import quote

from gallery.modules.common import DownloadError, StorageError, UploadError, ValidationError

from .base import SortColumn, StorageObject

logger = logging.getLogger(__name__)


class LocalObjectStore:
    def __init__(self, root: Path, bucket: str, public_base_url: str) -> None:
        self.bucket = bucket
        self.root = (Path(root) / bucket).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        if not path or path.startswith("/") or "\\" in path:
            raise ValidationError(f"Invalid object path: {path!r}")
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise ValidationError(f"Object path escapes the bucket: {path!r}")
        return target

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        if target.exists():
            raise UploadError(f"Object already exists: {path}", details={"path": path})
        tmp_path = target.with_name(f".{target.name}.part")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as buffer:
                buffer.write(data)
            os.replace(tmp_path, target)
        except OSError as exc:
            raise UploadError(f"Upload failed: {exc}", details={"path": path}) from exc
        finally:
            tmp_path.unlink(missing_ok=True)
        logger.debug("Stored %s (%d bytes, %s)", path, len(data), content_type)
        return path

    def get_public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{quote(path)}"

    async def list(
        self,
        prefix: str,
        *,
        limit: int = 100,
        offset: int = 0,
        sort_by: SortColumn = "name",
    ) -> list[StorageObject]:
        base = self.root / prefix.strip("/") if prefix else self.root
        if not base.exists():
            return []
        try:
            entries = [self._describe(file) for file in base.rglob("*") if file.is_file() and not file.name.startswith(".")]
        except OSError as exc:
            raise DownloadError(f"Failed to list objects: {exc}", details={"prefix": prefix}) from exc

        if sort_by == "created_at":
            entries.sort(key=lambda entry: (entry.created_at, entry.path), reverse=True)
        else:
            entries.sort(key=lambda entry: entry.path)
        return entries[offset:offset + limit]

    async def remove(self, paths: Sequence[str]) -> None:
        failures: dict[str, str] = {}
        for path in paths:
            try:
                self._resolve(path).unlink(missing_ok=True)
            except (OSError, ValidationError) as exc:
                failures[path] = str(exc)
        if failures:
            raise StorageError(
                f"Failed to delete {len(failures)} object(s)",
                details={"failures": failures},
            )

    async def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValidationError:
            return False

    async def read(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise DownloadError(f"Object not found: {path}", details={"path": path}) from exc
        except OSError as exc:
            raise DownloadError(f"Failed to read object: {exc}", details={"path": path}) from exc

    def _describe(self, file: Path) -> StorageObject:
        stat = file.stat()
        relative = file.relative_to(self.root).as_posix()
        mime_type, _ = mimetypes.guess_type(file.name)
        return StorageObject(
            bucket=self.bucket,
            path=relative,
            size_bytes=stat.st_size,
            mime_type=mime_type,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

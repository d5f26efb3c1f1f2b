"""Object store abstraction consumed by the storage core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Protocol, Sequence

SortColumn = Literal["name", "created_at"]


@dataclass(slots=True, frozen=True)
class StorageObject:
    bucket: str
    path: str
    size_bytes: int
    mime_type: str | None
    created_at: datetime


class ObjectStore(Protocol):
    """Binary storage keyed by ``bucket + path``.

    Implementations raise :class:`gallery.modules.common.StorageError`
    subclasses on failure; removing a missing object is not a failure.
    """

    bucket: str

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        ...

    def get_public_url(self, path: str) -> str:
        ...

    async def list(
        self,
        prefix: str,
        *,
        limit: int = 100,
        offset: int = 0,
        sort_by: SortColumn = "name",
    ) -> list[StorageObject]:
        ...

    async def remove(self, paths: Sequence[str]) -> None:
        ...

    async def exists(self, path: str) -> bool:
        ...

    async def read(self, path: str) -> bytes:
        ...

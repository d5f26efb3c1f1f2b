"""Catalog store abstraction for asset records."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .models import AssetRecord


class CatalogStore(Protocol):
    """Persistence contract for the asset catalog.

    Mutations are durable once they return; callers rely on this to decide
    whether an already-written object must be compensated.
    """

    async def create(self, *, created_by: str, values: Mapping[str, Any]) -> AssetRecord:
        ...

    async def update(self, item_id: str, values: Mapping[str, Any]) -> AssetRecord | None:
        ...

    async def delete(self, item_id: str) -> bool:
        ...

    async def get(self, item_id: str) -> AssetRecord | None:
        ...

    async def get_many(self, item_ids: Sequence[str]) -> dict[str, AssetRecord]:
        ...

    async def search(
        self,
        *,
        offset: int,
        limit: int,
        category: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[AssetRecord], int]:
        ...

    async def list_all(self) -> list[AssetRecord]:
        ...

    async def list_referenced_paths(self) -> set[str]:
        ...

    async def list_failed_processing(self) -> list[AssetRecord]:
        ...

    async def find_by_storage_path(self, storage_path: str) -> AssetRecord | None:
        ...

    async def stats(self, recent_since: Any) -> dict[str, Any]:
        ...

    async def analytics(self) -> dict[str, Any]:
        ...

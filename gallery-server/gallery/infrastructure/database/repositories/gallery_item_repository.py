"""SQLAlchemy implementation of the asset catalog."""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.db.models import GalleryItem
from gallery.modules.assets.models import AssetRecord
from gallery.modules.assets.repository import CatalogStore
from gallery.modules.common import DownloadError, StorageError

_WRITABLE_COLUMNS = (
    "title",
    "description",
    "storage_path",
    "public_url",
    "thumbnail_path",
    "thumbnail_url",
    "category",
    "tags",
    "status",
    "processing_status",
    "display_order",
    "event_id",
    "partner_id",
    "size_bytes",
    "metadata",
)


class SqlCatalogStore(CatalogStore):
    """Catalog backed by the ``gallery_items`` table.

    Every mutation commits before returning so a failed write surfaces here
    and not at the end of the request.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, created_by: str, values: Mapping[str, Any]) -> AssetRecord:
        model = GalleryItem(created_by=created_by)
        _apply(model, values)
        self._session.add(model)
        try:
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Failed to save gallery item: {exc}") from exc
        await self._session.refresh(model)
        return self._to_domain(model)

    async def update(self, item_id: str, values: Mapping[str, Any]) -> AssetRecord | None:
        model = await self._get_model(item_id)
        if model is None:
            return None
        _apply(model, values)
        try:
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Failed to update gallery item: {exc}") from exc
        await self._session.refresh(model)
        return self._to_domain(model)

    async def delete(self, item_id: str) -> bool:
        stmt = delete(GalleryItem).where(GalleryItem.id == item_id)
        try:
            result = await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Failed to delete gallery item: {exc}") from exc
        return bool(result.rowcount)

    async def get(self, item_id: str) -> AssetRecord | None:
        model = await self._get_model(item_id)
        return self._to_domain(model) if model else None

    async def get_many(self, item_ids: Sequence[str]) -> dict[str, AssetRecord]:
        if not item_ids:
            return {}
        stmt = select(GalleryItem).where(GalleryItem.id.in_(list(item_ids)))
        result = await self._read(stmt)
        return {str(model.id): self._to_domain(model) for model in result.scalars().all()}

    async def search(
        self,
        *,
        offset: int,
        limit: int,
        category: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[AssetRecord], int]:
        filters = []
        if category:
            filters.append(GalleryItem.category == category)
        if status:
            filters.append(GalleryItem.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    GalleryItem.title.ilike(pattern),
                    GalleryItem.description.ilike(pattern),
                    GalleryItem.category.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(GalleryItem).where(*filters)
        total = (await self._read(count_stmt)).scalar_one()

        stmt = (
            select(GalleryItem)
            .where(*filters)
            .order_by(GalleryItem.display_order.asc(), GalleryItem.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._read(stmt)
        return [self._to_domain(model) for model in result.scalars().all()], int(total)

    async def list_all(self) -> list[AssetRecord]:
        stmt = select(GalleryItem).order_by(GalleryItem.created_at.asc())
        result = await self._read(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_referenced_paths(self) -> set[str]:
        stmt = select(GalleryItem.storage_path, GalleryItem.thumbnail_path)
        result = await self._read(stmt)
        paths: set[str] = set()
        for storage_path, thumbnail_path in result.all():
            if storage_path:
                paths.add(storage_path)
            if thumbnail_path:
                paths.add(thumbnail_path)
        return paths

    async def list_failed_processing(self) -> list[AssetRecord]:
        stmt = select(GalleryItem).where(GalleryItem.processing_status == "failed")
        result = await self._read(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def find_by_storage_path(self, storage_path: str) -> AssetRecord | None:
        stmt = select(GalleryItem).where(GalleryItem.storage_path == storage_path)
        result = await self._read(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def stats(self, recent_since: datetime) -> dict[str, Any]:
        totals = (
            await self._read(
                select(func.count(GalleryItem.id), func.coalesce(func.sum(GalleryItem.size_bytes), 0))
            )
        ).one()
        by_category = await self._read(
            select(GalleryItem.category, func.count(GalleryItem.id)).group_by(GalleryItem.category)
        )
        by_status = await self._read(
            select(GalleryItem.status, func.count(GalleryItem.id)).group_by(GalleryItem.status)
        )
        recent = (
            await self._read(
                select(func.count(GalleryItem.id)).where(GalleryItem.created_at >= recent_since)
            )
        ).scalar_one()
        return {
            "totalFiles": int(totals[0]),
            "totalSize": int(totals[1]),
            "byCategory": {category: int(count) for category, count in by_category.all()},
            "byStatus": {status: int(count) for status, count in by_status.all()},
            "recentUploads": int(recent),
        }

    async def analytics(self) -> dict[str, Any]:
        """Size and age breakdown of every catalogued object, oldest first."""
        rows = await self._read(
            select(GalleryItem.storage_path, GalleryItem.size_bytes, GalleryItem.created_at)
            .where(GalleryItem.storage_path.is_not(None))
            .order_by(GalleryItem.created_at.asc(), GalleryItem.id.asc())
        )
        total_size = 0
        file_count = 0
        largest: dict[str, Any] | None = None
        oldest: dict[str, Any] | None = None
        by_extension: dict[str, int] = {}
        by_day: dict[str, int] = {}
        for path, size, created_at in rows.all():
            size = int(size or 0)
            file_count += 1
            total_size += size
            if largest is None or size > largest["size"]:
                largest = {"path": path, "size": size}
            if oldest is None and created_at is not None:
                oldest = {"path": path, "created": created_at}
            extension = PurePosixPath(path).suffix.lstrip(".").lower() or "unknown"
            by_extension[extension] = by_extension.get(extension, 0) + 1
            day = created_at.date().isoformat() if created_at is not None else "unknown"
            by_day[day] = by_day.get(day, 0) + 1
        return {
            "totalSize": total_size,
            "fileCount": file_count,
            "averageFileSize": total_size / file_count if file_count else 0,
            "largestFile": largest,
            "oldestFile": oldest,
            "byExtension": by_extension,
            "byDay": by_day,
        }

    async def _get_model(self, item_id: str) -> GalleryItem | None:
        stmt = (
            select(GalleryItem)
            .where(GalleryItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        result = await self._read(stmt)
        return result.scalar_one_or_none()

    async def _read(self, stmt):
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise DownloadError(f"Catalog query failed: {exc}") from exc

    @staticmethod
    def _to_domain(model: GalleryItem) -> AssetRecord:
        return AssetRecord(
            id=str(model.id),
            title=model.title or "",
            description=model.description,
            storage_path=model.storage_path,
            public_url=model.public_url or "",
            thumbnail_path=model.thumbnail_path,
            thumbnail_url=model.thumbnail_url,
            category=model.category or "general",
            tags=list(model.tags or []),
            status=model.status or "published",
            processing_status=model.processing_status or "ready",
            display_order=model.display_order or 0,
            event_id=model.event_id,
            partner_id=model.partner_id,
            size_bytes=model.size_bytes or 0,
            metadata=dict(model.file_metadata or {}),
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


def _apply(model: GalleryItem, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if key not in _WRITABLE_COLUMNS:
            raise ValueError(f"Unknown gallery item field: {key}")
        if key == "metadata":
            model.file_metadata = dict(value or {})
        elif key == "tags":
            model.tags = sorted(set(value or []))
        else:
            setattr(model, key, value)

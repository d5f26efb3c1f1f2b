"""Metadata-only catalog backup and restore.

A manifest never contains file bytes; restoring a row requires its object to
still be present in the store.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Mapping

from gallery.infrastructure.storage import ObjectStore
from gallery.modules.assets.models import ASSET_STATUSES, CATEGORIES
from gallery.modules.assets.repository import CatalogStore
from gallery.modules.common import ValidationError, describe_error

from .models import BackupItem, BackupManifest, RestoreReport

logger = logging.getLogger(__name__)

_RESTORED_FIELDS = ("title", "description", "category", "status", "tags", "display_order", "event_id", "partner_id")


class BackupManager:
    def __init__(self, store: ObjectStore, catalog: CatalogStore) -> None:
        self.store = store
        self.catalog = catalog

    async def export_backup(self) -> BackupManifest:
        records = await self.catalog.list_all()
        items = [
            BackupItem(
                id=record.id,
                storage_path=record.storage_path,
                metadata={
                    "title": record.title,
                    "description": record.description,
                    "category": record.category,
                    "status": record.status,
                    "tags": list(record.tags),
                    "display_order": record.display_order,
                    "event_id": record.event_id,
                    "partner_id": record.partner_id,
                    "thumbnail_path": record.thumbnail_path,
                    "size_bytes": record.size_bytes,
                    "file_metadata": record.metadata,
                    "created_by": record.created_by,
                    "created_at": record.created_at.isoformat() if record.created_at else None,
                    "updated_at": record.updated_at.isoformat() if record.updated_at else None,
                },
            )
            for record in records
            if record.storage_path
        ]
        return BackupManifest(
            timestamp=datetime.now(timezone.utc).isoformat(),
            bucket=self.store.bucket,
            file_count=len(items),
            total_size=sum(int(item.metadata.get("size_bytes") or 0) for item in items),
            items=items,
        )

    async def restore_backup(self, manifest: BackupManifest | Mapping[str, Any], user_id: str) -> RestoreReport:
        """Upsert catalog rows by ``storage_path``; rows whose object is gone are reported as failed."""
        if isinstance(manifest, BackupManifest):
            manifest = asdict(manifest)
        items = manifest.get("items")
        if not isinstance(items, list):
            raise ValidationError("Backup manifest has no item list")

        report = RestoreReport()
        for raw in items:
            storage_path = (raw or {}).get("storage_path") if isinstance(raw, Mapping) else None
            if not storage_path:
                report.failed += 1
                report.errors.append("Backup entry without storage_path")
                continue
            try:
                if not await self.store.exists(storage_path):
                    report.failed += 1
                    report.errors.append(f"File not found in storage: {storage_path}")
                    continue
                await self._restore_one(storage_path, raw.get("metadata") or {}, user_id)
            except Exception as exc:  # pylint: disable=broad-except
                report.failed += 1
                report.errors.append(f"Failed to restore {storage_path}: {describe_error(exc)}")
                continue
            report.restored += 1

        logger.info("Restore finished: %d restored, %d failed", report.restored, report.failed)
        return report

    async def _restore_one(self, storage_path: str, metadata: Mapping[str, Any], user_id: str) -> None:
        values: dict[str, Any] = {key: metadata[key] for key in _RESTORED_FIELDS if key in metadata}
        if values.get("category") not in CATEGORIES:
            values["category"] = "general"
        if values.get("status") not in ASSET_STATUSES:
            values["status"] = "draft"
        values["tags"] = list(values.get("tags") or [])
        values["metadata"] = dict(metadata.get("file_metadata") or {})
        values["size_bytes"] = int(metadata.get("size_bytes") or values["metadata"].get("size") or 0)

        thumbnail_path = metadata.get("thumbnail_path")
        if thumbnail_path and await self.store.exists(thumbnail_path):
            values["thumbnail_path"] = thumbnail_path
            values["thumbnail_url"] = self.store.get_public_url(thumbnail_path)

        existing = await self.catalog.find_by_storage_path(storage_path)
        if existing is not None:
            await self.catalog.update(existing.id, values)
            return
        values["storage_path"] = storage_path
        values["public_url"] = self.store.get_public_url(storage_path)
        values["title"] = values.get("title") or storage_path.rsplit("/", 1)[-1]
        await self.catalog.create(created_by=metadata.get("created_by") or user_id, values=values)

"""Gallery asset use cases: create, replace, update, delete and read.

Every mutation passes the permission gate first. Uploads are additionally
gated by the quota manager and the rate limiter, then handed to the upload
pipeline, which removes the written object again if the catalog write fails.
Deletes remove the catalog row before the objects; an object that cannot be
removed afterwards stays behind as an orphan for the reconciler.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gallery.core.config import RateLimitSettings
from gallery.infrastructure.database.repositories.gallery_item_repository import SqlCatalogStore
from gallery.infrastructure.storage import ObjectStore
from gallery.modules.accounts.service import AccountService
from gallery.modules.common import (
    StorageError,
    ValidationError,
    describe_error,
    not_found,
    permission_denied,
)
from gallery.modules.permissions import AccessDecision, PermissionGate, can_transition
from gallery.modules.quotas import QuotaManager
from gallery.modules.ratelimits import RateLimiter, rate_limit_key

from .models import (
    ASSET_STATUSES,
    CATEGORIES,
    EDITABLE_FIELDS,
    AssetAttributes,
    AssetPage,
    AssetRecord,
    CancellationToken,
    IncomingFile,
    StepOutcome,
    UploadedAsset,
    UploadOptions,
    UploadResult,
)
from .pipeline import ProgressCallback, UploadPipeline
from .repository import CatalogStore
from .validation import FileValidator

logger = logging.getLogger(__name__)


class GalleryService:
    def __init__(
        self,
        *,
        catalog: CatalogStore,
        store: ObjectStore,
        pipeline: UploadPipeline,
        validator: FileValidator,
        quotas: QuotaManager,
        rate_limiter: RateLimiter,
        permissions: PermissionGate,
        rate_limits: RateLimitSettings,
        audit: Any = None,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.pipeline = pipeline
        self.validator = validator
        self.quotas = quotas
        self.rate_limiter = rate_limiter
        self.permissions = permissions
        self.rate_limits = rate_limits
        self.audit = audit
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @classmethod
    def with_session(cls, session: AsyncSession, container) -> "GalleryService":
        settings = container.settings
        catalog = SqlCatalogStore(session)
        accounts = AccountService.with_session(session, settings.quota.default_quota_bytes)
        pipeline = UploadPipeline(
            container.store,
            container.validator,
            container.imaging,
            base_path=settings.storage.base_path,
            thumbnails_dir=settings.storage.thumbnails_dir,
            watermark_text=settings.gallery.watermark_text,
            watermark_position=settings.gallery.watermark_position,
            watermark_opacity=settings.gallery.watermark_opacity,
            audit=container.audit,
        )
        return cls(
            catalog=catalog,
            store=container.store,
            pipeline=pipeline,
            validator=container.validator,
            quotas=QuotaManager(accounts),
            rate_limiter=container.rate_limiter,
            permissions=PermissionGate(accounts, catalog),
            rate_limits=settings.rate_limit,
            audit=container.audit,
            default_page_size=settings.gallery.default_page_size,
            max_page_size=settings.gallery.max_page_size,
        )

    # uploads

    async def create_asset(
        self,
        file: IncomingFile,
        user_id: str,
        attributes: Optional[AssetAttributes] = None,
        options: Optional[UploadOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UploadedAsset:
        attributes = attributes or AssetAttributes()
        self.validator.validate(file).raise_for_errors()
        _validate_attributes(attributes.category, attributes.status)
        await self.permissions.require(user_id, "upload")
        await self.quotas.ensure_quota(user_id, file.size)
        await self.rate_limiter.enforce(
            rate_limit_key(user_id, "upload"),
            self.rate_limits.upload_limit,
            self.rate_limits.upload_window_ms,
        )

        async def commit(result: UploadResult) -> AssetRecord:
            values = asdict(attributes)
            values["title"] = attributes.title or _title_from(file.file_name)
            values.update(_object_columns(result))
            return await self.catalog.create(created_by=user_id, values=values)

        result, record = await self.pipeline.upload_and_commit(
            file, user_id, commit, options, progress=progress, cancel_token=cancel_token
        )
        steps = list(result.steps)
        steps.append(await self._track_usage(user_id, result.size, "add"))
        logger.info("User %s uploaded %s (%d bytes)", user_id, result.path, result.size)
        return UploadedAsset(item=record, upload=result, steps=steps)

    async def replace_asset_file(
        self,
        item_id: str,
        file: IncomingFile,
        user_id: str,
        options: Optional[UploadOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UploadedAsset:
        current = _granted(await self.permissions.validate_item_access(item_id, user_id, "edit"))
        self.validator.validate(file).raise_for_errors()
        await self.quotas.ensure_quota(current.created_by, max(file.size - current.size_bytes, 0))
        await self.rate_limiter.enforce(
            rate_limit_key(user_id, "upload"),
            self.rate_limits.upload_limit,
            self.rate_limits.upload_window_ms,
        )

        async def commit(result: UploadResult) -> AssetRecord:
            record = await self.catalog.update(item_id, _object_columns(result))
            if record is None:
                raise not_found(f"Item {item_id} not found", item_id=item_id)
            return record

        result, record = await self.pipeline.upload_and_commit(
            file, user_id, commit, options, progress=progress, cancel_token=cancel_token
        )
        steps = list(result.steps)
        steps.append(await self._remove_objects(current.object_paths(), "previous_file"))

        delta = result.size - current.size_bytes
        if delta:
            steps.append(await self._track_usage(current.created_by, abs(delta), "add" if delta > 0 else "remove"))
        await self._audit("replace", result.path, {"previous_path": current.storage_path, "size": result.size}, user_id)
        return UploadedAsset(item=record, upload=result, steps=steps)

    # metadata

    async def update_asset(self, item_id: str, user_id: str, changes: Mapping[str, Any]) -> AssetRecord:
        current = _granted(await self.permissions.validate_item_access(item_id, user_id, "edit"))

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        _validate_attributes(changes.get("category"), changes.get("status"))

        target = changes.get("status")
        if target and target != current.status:
            capabilities = await self.permissions.capabilities(user_id)
            if not can_transition(capabilities, current.status, target):
                raise permission_denied(
                    f"Cannot move item from {current.status} to {target}",
                    current=current.status,
                    target=target,
                )

        record = await self.catalog.update(item_id, dict(changes))
        if record is None:
            raise not_found(f"Item {item_id} not found", item_id=item_id)
        return record

    async def delete_asset(self, item_id: str, user_id: str) -> list[StepOutcome]:
        current = _granted(await self.permissions.validate_item_access(item_id, user_id, "delete"))
        await self.rate_limiter.enforce(
            rate_limit_key(user_id, "delete"),
            self.rate_limits.delete_limit,
            self.rate_limits.delete_window_ms,
        )

        if not await self.catalog.delete(item_id):
            raise not_found(f"Item {item_id} not found", item_id=item_id)

        steps = [await self._remove_objects(current.object_paths(), "remove_objects")]
        if current.size_bytes:
            steps.append(await self._track_usage(current.created_by, current.size_bytes, "remove"))
        await self._audit(
            "delete",
            current.storage_path or "",
            {"item_id": item_id, "size": current.size_bytes},
            user_id,
            success=steps[0].status != "failed",
            error=steps[0].reason if steps[0].status == "failed" else None,
        )
        logger.info("User %s deleted gallery item %s", user_id, item_id)
        return steps

    # reads

    async def get_asset(self, item_id: str) -> AssetRecord:
        record = await self.catalog.get(item_id)
        if record is None:
            raise not_found(f"Item {item_id} not found", item_id=item_id)
        return record

    async def list_assets(
        self,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        status: Optional[str] = "published",
        search: Optional[str] = None,
    ) -> AssetPage:
        page = max(page, 1)
        limit = min(max(limit or self.default_page_size, 1), self.max_page_size)
        items, total = await self.catalog.search(
            offset=(page - 1) * limit,
            limit=limit,
            category=category or None,
            status=status or None,
            search=(search or "").strip() or None,
        )
        return AssetPage(data=items, total=total, page=page, limit=limit)

    async def get_storage_stats(self) -> dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(hours=24)
        return await self.catalog.stats(since)

    async def get_storage_analytics(self) -> dict[str, Any]:
        return await self.catalog.analytics()

    # helpers

    async def _track_usage(self, user_id: str, size: int, op: str) -> StepOutcome:
        try:
            await self.quotas.update_usage(user_id, size, op)  # type: ignore[arg-type]
        except StorageError as exc:
            logger.warning("Failed to %s %d bytes of usage for %s: %s", op, size, user_id, exc.message)
            return StepOutcome("quota_usage", "failed", exc.message)
        return StepOutcome("quota_usage", "ok")

    async def _remove_objects(self, paths: list[str], step: str) -> StepOutcome:
        if not paths:
            return StepOutcome(step, "skipped", "no stored objects")
        try:
            await self.store.remove(paths)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not remove %s, left for reconciliation: %s", ", ".join(paths), describe_error(exc))
            return StepOutcome(step, "failed", describe_error(exc))
        return StepOutcome(step, "ok")

    async def _audit(self, action: str, path: str, metadata: dict[str, Any], user_id: str, **kwargs: Any) -> None:
        if self.audit is not None:
            await self.audit.log_operation(action, path, metadata, user_id=user_id, **kwargs)


def _granted(decision: AccessDecision) -> AssetRecord:
    if decision.allowed:
        return decision.item
    if decision.code == "not_found":
        raise not_found(decision.reason or "Item not found")
    raise permission_denied(decision.reason or "Permission denied", code=decision.code)


def _validate_attributes(category: Optional[str], status: Optional[str]) -> None:
    if category is not None and category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {category}. Allowed: {', '.join(CATEGORIES)}")
    if status is not None and status not in ASSET_STATUSES:
        raise ValidationError(f"Unknown status: {status}. Allowed: {', '.join(ASSET_STATUSES)}")


def _object_columns(result: UploadResult) -> dict[str, Any]:
    return {
        "storage_path": result.path,
        "public_url": result.url,
        "thumbnail_path": result.thumbnail_path,
        "thumbnail_url": result.thumbnail_url,
        "size_bytes": result.size,
        "metadata": result.metadata,
        "processing_status": "ready",
    }


def _title_from(file_name: str) -> str:
    stem = file_name.rsplit(".", 1)[0]
    return stem.replace("_", " ").replace("-", " ").strip() or file_name

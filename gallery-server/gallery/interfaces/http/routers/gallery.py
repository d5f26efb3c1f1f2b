"""Gallery upload, catalog and reconciliation endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from gallery.core.config import get_settings
from gallery.core.security import get_current_account
from gallery.interfaces.http.deps import (
    get_backup_manager,
    get_batch_coordinator,
    get_consistency_checker,
    get_gallery_service,
)
from gallery.modules.accounts import Account as AccountDomain
from gallery.modules.assets import AssetAttributes, IncomingFile, UploadOptions
from gallery.modules.assets.batch import BatchCoordinator
from gallery.modules.assets.service import GalleryService
from gallery.modules.common import permission_denied
from gallery.modules.consistency.backup import BackupManager
from gallery.modules.consistency.service import ConsistencyChecker
from gallery.schemas import (
    BackupManifestSchema,
    BatchDeleteRequest,
    BatchDeleteResponse,
    BatchUploadResponse,
    CleanupResponse,
    ConsistencyIssueSchema,
    ConsistencyResponse,
    DeleteResponse,
    GalleryItemResponse,
    GalleryItemUpdate,
    GalleryListResponse,
    HealthResponse,
    OrphansResponse,
    PermissionsResponse,
    QuotaResponse,
    ReplaceFileResponse,
    RestoreResponse,
    StepOutcomeSchema,
    StorageAnalyticsResponse,
    StorageStatsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

CHUNK_SIZE = 1024 * 1024


async def _read_upload(upload: UploadFile, max_size: int) -> IncomingFile:
    """Read at most ``max_size + 1`` bytes so oversized files still fail validation on size."""
    chunks: list[bytes] = []
    received = 0
    try:
        while received <= max_size:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            received += len(chunk)
    finally:
        await upload.close()
    data = b"".join(chunks)[: max_size + 1]
    return IncomingFile(
        file_name=upload.filename or "file",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


async def _acting_user(account: AccountDomain, service: GalleryService, user_id: Optional[str]) -> str:
    if not user_id or user_id == account.id:
        return account.id
    if not await service.permissions.has_capability(account.id, "manage"):
        raise permission_denied("Uploading on behalf of another user requires the manage capability")
    return user_id


@router.post("/upload", response_model=BatchUploadResponse, summary="Upload one or more images")
async def upload_files(
    files: List[UploadFile] = File(...),
    user_id: Optional[str] = Form(default=None, alias="userId"),
    category: str = Form(default="general"),
    title: str = Form(default=""),
    status: str = Form(default="published"),
    optimize: bool = Form(default=True),
    watermark: bool = Form(default=False),
    generate_thumbnail: bool = Form(default=True, alias="generateThumbnail"),
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    coordinator: BatchCoordinator = Depends(get_batch_coordinator),
):
    owner_id = await _acting_user(account, service, user_id)
    max_size = get_settings().gallery.max_file_size
    incoming = [await _read_upload(upload, max_size) for upload in files]
    summary = await coordinator.process_batch(
        incoming,
        owner_id,
        AssetAttributes(title=title, category=category, status=status),
        UploadOptions(optimize=optimize, watermark=watermark, generate_thumbnail=generate_thumbnail),
    )
    return BatchUploadResponse.model_validate(summary, from_attributes=True)


@router.get("/items", response_model=GalleryListResponse)
async def list_items(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    category: Optional[str] = None,
    status: Optional[str] = "published",
    search: Optional[str] = None,
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    await service.permissions.require(account.id, "view")
    result = await service.list_assets(page=page, limit=limit, category=category, status=status, search=search)
    return GalleryListResponse(
        data=[GalleryItemResponse.model_validate(item) for item in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.post("/items/batch-delete", response_model=BatchDeleteResponse)
async def batch_delete_items(
    payload: BatchDeleteRequest,
    account: AccountDomain = Depends(get_current_account),
    coordinator: BatchCoordinator = Depends(get_batch_coordinator),
):
    summary = await coordinator.delete_batch(payload.ids, account.id)
    return BatchDeleteResponse.model_validate(summary, from_attributes=True)


@router.get("/items/{item_id}", response_model=GalleryItemResponse)
async def get_item(
    item_id: str,
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    await service.permissions.require(account.id, "view")
    return await service.get_asset(item_id)


@router.patch("/items/{item_id}", response_model=GalleryItemResponse)
async def update_item(
    item_id: str,
    payload: GalleryItemUpdate,
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    return await service.update_asset(item_id, account.id, payload.model_dump(exclude_unset=True))


@router.put("/items/{item_id}/file", response_model=ReplaceFileResponse)
async def replace_item_file(
    item_id: str,
    file: UploadFile = File(...),
    optimize: bool = Form(default=True),
    watermark: bool = Form(default=False),
    generate_thumbnail: bool = Form(default=True, alias="generateThumbnail"),
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    incoming = await _read_upload(file, get_settings().gallery.max_file_size)
    replaced = await service.replace_asset_file(
        item_id,
        incoming,
        account.id,
        UploadOptions(optimize=optimize, watermark=watermark, generate_thumbnail=generate_thumbnail),
    )
    return ReplaceFileResponse(
        item=GalleryItemResponse.model_validate(replaced.item),
        steps=[StepOutcomeSchema.model_validate(step) for step in replaced.steps],
    )


@router.delete("/items/{item_id}", response_model=DeleteResponse)
async def delete_item(
    item_id: str,
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    steps = await service.delete_asset(item_id, account.id)
    return DeleteResponse(success=True, steps=[StepOutcomeSchema.model_validate(step) for step in steps])


@router.get("/stats", response_model=StorageStatsResponse)
async def storage_stats(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    await service.permissions.require(account.id, "view")
    return StorageStatsResponse.model_validate(await service.get_storage_stats())


@router.get("/analytics", response_model=StorageAnalyticsResponse)
async def storage_analytics(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    await service.permissions.require(account.id, "manage")
    return StorageAnalyticsResponse.model_validate(await service.get_storage_analytics())


@router.get("/quota", response_model=QuotaResponse)
async def quota_usage(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    usage = await service.quotas.get_usage(account.id)
    return QuotaResponse(
        user_id=usage.user_id,
        quota_bytes=usage.quota_bytes,
        used_bytes=usage.used_bytes,
        remaining_bytes=usage.remaining_bytes,
        percent_used=usage.percent_used,
    )


@router.get("/permissions", response_model=PermissionsResponse)
async def permissions(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
):
    return await service.permissions.permission_matrix(account.id)


# reconciliation (manage only)


@router.get("/consistency", response_model=ConsistencyResponse)
async def check_consistency(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    checker: ConsistencyChecker = Depends(get_consistency_checker),
):
    await service.permissions.require(account.id, "manage")
    report = await checker.check_consistency()
    return ConsistencyResponse(
        issues=[ConsistencyIssueSchema.model_validate(issue) for issue in report.issues],
        count=report.count,
        errors=report.errors,
        truncated=report.truncated,
    )


@router.get("/orphans", response_model=OrphansResponse)
async def find_orphans(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    checker: ConsistencyChecker = Depends(get_consistency_checker),
):
    await service.permissions.require(account.id, "manage")
    orphans = await checker.find_orphaned_files()
    return OrphansResponse(orphans=orphans, count=len(orphans))


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_orphans(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    checker: ConsistencyChecker = Depends(get_consistency_checker),
):
    await service.permissions.require(account.id, "manage")
    report = await checker.cleanup_orphaned_files()
    logger.info("Orphan cleanup requested by %s: %d deleted", account.username, report.deleted)
    return CleanupResponse.model_validate(report)


@router.get("/health", response_model=HealthResponse)
async def storage_health(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    checker: ConsistencyChecker = Depends(get_consistency_checker),
):
    await service.permissions.require(account.id, "manage")
    return HealthResponse.model_validate(await checker.get_storage_health())


@router.get("/backup", response_model=BackupManifestSchema)
async def export_backup(
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    backups: BackupManager = Depends(get_backup_manager),
):
    await service.permissions.require(account.id, "manage")
    return BackupManifestSchema.model_validate(await backups.export_backup())


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    payload: BackupManifestSchema,
    account: AccountDomain = Depends(get_current_account),
    service: GalleryService = Depends(get_gallery_service),
    backups: BackupManager = Depends(get_backup_manager),
):
    await service.permissions.require(account.id, "manage")
    report = await backups.restore_backup(payload.model_dump(), account.id)
    return RestoreResponse.model_validate(report)

"""Gallery service dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.core.container import ApplicationContainer, get_container
from gallery.infrastructure.database.repositories.gallery_item_repository import SqlCatalogStore
from gallery.modules.assets.batch import BatchCoordinator
from gallery.modules.assets.service import GalleryService
from gallery.modules.consistency.backup import BackupManager
from gallery.modules.consistency.runner import build_checker
from gallery.modules.consistency.service import ConsistencyChecker

from .database import get_db_session


def get_app_container() -> ApplicationContainer:
    return get_container()


def get_gallery_service(
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> GalleryService:
    return GalleryService.with_session(db, container)


def get_batch_coordinator(service: GalleryService = Depends(get_gallery_service)) -> BatchCoordinator:
    return BatchCoordinator(service)


def get_consistency_checker(
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> ConsistencyChecker:
    return build_checker(container, SqlCatalogStore(db))


def get_backup_manager(
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> BackupManager:
    return BackupManager(container.store, SqlCatalogStore(db))


__all__ = [
    "get_app_container",
    "get_backup_manager",
    "get_batch_coordinator",
    "get_consistency_checker",
    "get_gallery_service",
]

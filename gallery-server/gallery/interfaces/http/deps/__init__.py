"""Reusable FastAPI dependencies."""

from .database import get_db_session
from .account import get_account_repository, get_account_service
from .gallery import (
    get_app_container,
    get_backup_manager,
    get_batch_coordinator,
    get_consistency_checker,
    get_gallery_service,
)

__all__ = [
    "get_db_session",
    "get_account_repository",
    "get_account_service",
    "get_app_container",
    "get_backup_manager",
    "get_batch_coordinator",
    "get_consistency_checker",
    "get_gallery_service",
]

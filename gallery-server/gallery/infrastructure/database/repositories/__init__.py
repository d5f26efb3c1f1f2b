"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .audit_repository import SqlAuditRepository
from .gallery_item_repository import SqlCatalogStore

__all__ = [
    "SqlAccountRepository",
    "SqlAuditRepository",
    "SqlCatalogStore",
]

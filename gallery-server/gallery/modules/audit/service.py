"""Fire-and-forget storage audit trail."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gallery.infrastructure.database.repositories.audit_repository import SqlAuditRepository

from .models import AuditEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Writes ``storage_audit_log`` rows in a session of its own.

    ``log_operation`` never raises: a failed write is logged and reported as
    ``False`` so the calling operation can record a degraded step.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], bucket: str) -> None:
        self._session_factory = session_factory
        self.bucket = bucket

    async def log_operation(
        self,
        action: str,
        path: str,
        metadata: Optional[dict[str, Any]] = None,
        success: bool = True,
        error: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        metadata = dict(metadata or {})
        try:
            async with self._session_factory() as session:
                repository = SqlAuditRepository(session)
                await repository.add(
                    action=action,
                    bucket_name=self.bucket,
                    file_path=path,
                    success=success,
                    user_id=user_id,
                    file_size=_as_int(metadata.get("size")),
                    mime_type=metadata.get("mime_type"),
                    metadata=metadata,
                    error_message=error,
                )
                await session.commit()
        except Exception:  # pylint: disable=broad-except
            logger.warning("Failed to write audit entry for %s %s", action, path, exc_info=True)
            return False
        return True

    async def list_operations(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Sequence[AuditEntry]:
        async with self._session_factory() as session:
            repository = SqlAuditRepository(session)
            return await repository.list_entries(limit=limit, offset=offset, user_id=user_id, action=action)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None

"""SQLAlchemy implementation of the storage audit log."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.db.models import StorageAuditLog
from gallery.modules.audit.models import AuditEntry


class SqlAuditRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        action: str,
        bucket_name: str,
        file_path: str,
        success: bool,
        user_id: Optional[str] = None,
        file_size: Optional[int] = None,
        mime_type: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> AuditEntry:
        model = StorageAuditLog(
            action=action,
            bucket_name=bucket_name,
            file_path=file_path,
            success=success,
            user_id=user_id,
            file_size=file_size,
            mime_type=mime_type,
            metadata_json=metadata,
            error_message=error_message,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    async def list_entries(
        self,
        *,
        limit: int,
        offset: int = 0,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Sequence[AuditEntry]:
        stmt = select(StorageAuditLog)
        if user_id:
            stmt = stmt.where(StorageAuditLog.user_id == user_id)
        if action:
            stmt = stmt.where(StorageAuditLog.action == action)
        stmt = stmt.order_by(StorageAuditLog.created_at.desc()).offset(offset).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: StorageAuditLog) -> AuditEntry:
        return AuditEntry(
            id=str(model.id),
            action=model.action,
            bucket_name=model.bucket_name,
            file_path=model.file_path,
            success=bool(model.success),
            user_id=model.user_id,
            file_size=model.file_size,
            mime_type=model.mime_type,
            metadata=model.metadata_json or {},
            error_message=model.error_message,
            created_at=model.created_at,
        )

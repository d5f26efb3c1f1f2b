"""Per-user storage quota checks and usage bookkeeping.

``check_quota`` and ``update_usage`` are separate calls and nothing locks the
user between them: two concurrent uploads from the same user can both pass
the check before either records its usage. ``update_usage`` itself is a
single SQL increment, so concurrent adjustments do not lose updates.
"""

from __future__ import annotations

import logging
from typing import Protocol

from gallery.modules.accounts.exceptions import AccountNotFoundError
from gallery.modules.accounts.models import QuotaRecord
from gallery.modules.common import StorageError, StorageErrorKind, ValidationError

from .models import QuotaCheck, QuotaUsage, UsageOperation

logger = logging.getLogger(__name__)


class QuotaProfileProvider(Protocol):
    async def get_quota(self, user_id: str) -> QuotaRecord | None:
        ...

    async def adjust_usage(self, user_id: str, delta_bytes: int) -> QuotaRecord:
        ...


class QuotaManager:
    def __init__(self, profiles: QuotaProfileProvider) -> None:
        self._profiles = profiles

    async def check_quota(self, user_id: str, incoming_bytes: int) -> QuotaCheck:
        record = await self._profiles.get_quota(user_id)
        if record is None:
            return QuotaCheck(allowed=False, quota=0, used=0)
        allowed = record.used_bytes + incoming_bytes <= record.quota_bytes
        return QuotaCheck(allowed=allowed, quota=record.quota_bytes, used=record.used_bytes)

    async def ensure_quota(self, user_id: str, incoming_bytes: int) -> QuotaCheck:
        check = await self.check_quota(user_id, incoming_bytes)
        if not check.allowed:
            raise StorageError(
                "Storage quota exceeded",
                kind=StorageErrorKind.QUOTA_EXCEEDED,
                details={"quota": check.quota, "used": check.used, "incoming": incoming_bytes},
            )
        return check

    async def update_usage(self, user_id: str, size_bytes: int, op: UsageOperation) -> QuotaUsage:
        if size_bytes < 0:
            raise ValidationError("Usage delta must not be negative")
        if op not in ("add", "remove"):
            raise ValidationError(f"Unknown usage operation: {op}")
        delta = size_bytes if op == "add" else -size_bytes
        try:
            record = await self._profiles.adjust_usage(user_id, delta)
        except AccountNotFoundError as exc:
            raise StorageError(
                f"Unknown user: {user_id}", kind=StorageErrorKind.NOT_FOUND, details={"user_id": user_id}
            ) from exc
        logger.debug("Usage for %s %s %d bytes -> %d", user_id, op, size_bytes, record.used_bytes)
        return QuotaUsage(user_id=user_id, quota_bytes=record.quota_bytes, used_bytes=record.used_bytes)

    async def get_usage(self, user_id: str) -> QuotaUsage:
        record = await self._profiles.get_quota(user_id)
        if record is None:
            raise StorageError(
                f"Unknown user: {user_id}", kind=StorageErrorKind.NOT_FOUND, details={"user_id": user_id}
            )
        return QuotaUsage(user_id=user_id, quota_bytes=record.quota_bytes, used_bytes=record.used_bytes)

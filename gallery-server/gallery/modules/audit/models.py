"""Audit log domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

AUDIT_ACTIONS = ("upload", "rollback", "delete", "replace", "cleanup", "restore")


@dataclass(slots=True)
class AuditEntry:
    id: str
    action: str
    bucket_name: str
    file_path: str
    success: bool
    user_id: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

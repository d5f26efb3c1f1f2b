"""Reconciliation report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

IssueType = Literal["missing_file", "orphaned_file", "processing_failed"]
HealthStatus = Literal["healthy", "warning", "error"]


@dataclass(slots=True, frozen=True)
class ConsistencyIssue:
    type: IssueType
    path: Optional[str]
    message: str
    item_id: Optional[str] = None


@dataclass(slots=True)
class ConsistencyReport:
    issues: list[ConsistencyIssue] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    truncated: bool = False

    @property
    def count(self) -> int:
        return len(self.issues)

    def of_type(self, issue_type: IssueType) -> list[ConsistencyIssue]:
        return [issue for issue in self.issues if issue.type == issue_type]


@dataclass(slots=True, frozen=True)
class CleanupError:
    path: str
    error: str


@dataclass(slots=True)
class CleanupReport:
    attempted: int = 0
    deleted: int = 0
    errors: list[CleanupError] = field(default_factory=list)


@dataclass(slots=True)
class HealthReport:
    status: HealthStatus
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RestoreReport:
    restored: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class BackupItem:
    id: str
    storage_path: str
    metadata: dict[str, Any]


@dataclass(slots=True)
class BackupManifest:
    timestamp: str
    bucket: str
    file_count: int
    total_size: int
    items: list[BackupItem] = field(default_factory=list)

"""Domain models for gallery assets."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional

ASSET_STATUSES = ("draft", "published", "archived")
CATEGORIES = ("event", "partner", "team", "general")
PROCESSING_STATUSES = ("pending", "ready", "failed")

StepStatus = Literal["ok", "skipped", "failed"]


@dataclass(slots=True)
class IncomingFile:
    """An upload held in memory, as read from the request body."""

    file_name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class UploadOptions:
    optimize: bool = True
    watermark: bool = False
    generate_thumbnail: bool = True


@dataclass(slots=True, frozen=True)
class StepOutcome:
    name: str
    status: StepStatus
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status, "reason": self.reason}


@dataclass(slots=True)
class UploadResult:
    path: str
    url: str
    metadata: dict[str, Any]
    thumbnail_url: Optional[str] = None
    thumbnail_path: Optional[str] = None
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def size(self) -> int:
        return int(self.metadata.get("size", 0))

    def object_paths(self) -> list[str]:
        return [path for path in (self.path, self.thumbnail_path) if path]

    def degraded_steps(self) -> list[StepOutcome]:
        return [step for step in self.steps if step.status == "failed"]


class CancellationToken:
    """Cooperative cancellation flag checked between pipeline steps."""

    __slots__ = ("_event", "reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "Upload cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(slots=True)
class AssetAttributes:
    title: str = ""
    description: Optional[str] = None
    category: str = "general"
    tags: list[str] = field(default_factory=list)
    status: str = "published"
    display_order: int = 0
    event_id: Optional[str] = None
    partner_id: Optional[str] = None


@dataclass(slots=True)
class AssetRecord:
    id: str
    title: str
    storage_path: Optional[str]
    public_url: str
    category: str
    status: str
    created_by: str
    description: Optional[str] = None
    thumbnail_path: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    processing_status: str = "ready"
    display_order: int = 0
    event_id: Optional[str] = None
    partner_id: Optional[str] = None
    size_bytes: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def object_paths(self) -> list[str]:
        return [path for path in (self.storage_path, self.thumbnail_path) if path]


@dataclass(slots=True)
class AssetPage:
    data: list[AssetRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


@dataclass(slots=True)
class BatchItemResult:
    file_name: str
    success: bool
    item: Optional[AssetRecord] = None
    error: Optional[str] = None
    code: Optional[str] = None
    steps: list[StepOutcome] = field(default_factory=list)


@dataclass(slots=True)
class BatchSummary:
    total: int
    successful: int
    failed: int
    results: list[Any]

    @classmethod
    def tally(cls, results: list[Any]) -> "BatchSummary":
        successful = sum(1 for result in results if result.success)
        return cls(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
        )


@dataclass(slots=True)
class DeleteResult:
    id: str
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None


@dataclass(slots=True)
class UploadedAsset:
    item: AssetRecord
    upload: UploadResult
    steps: list[StepOutcome] = field(default_factory=list)


EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "tags",
    "status",
    "display_order",
    "event_id",
    "partner_id",
)

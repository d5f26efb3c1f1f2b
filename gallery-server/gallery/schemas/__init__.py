"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)


class AccountLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: str
    username: str
    role: str


class TokenData(BaseModel):
    account_id: str
    username: str
    role: str


class AccountCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    role: str = "contributor"
    email: Optional[str] = None
    quota_bytes: Optional[int] = Field(default=None, ge=0)


class AccountUpdate(BaseModel):
    email: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
    quota_bytes: Optional[int] = Field(default=None, ge=0)


class AccountResponse(BaseModel):
    id: str
    username: str
    role: str
    is_active: bool
    email: Optional[str] = None
    quota_bytes: Optional[int] = None
    used_bytes: int = 0
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StepOutcomeSchema(BaseModel):
    name: str
    status: Literal["ok", "skipped", "failed"]
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GalleryItemResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    storage_path: Optional[str] = None
    public_url: str
    thumbnail_url: Optional[str] = None
    category: str
    tags: list[str] = Field(default_factory=list)
    status: str
    processing_status: str
    display_order: int = 0
    event_id: Optional[str] = None
    partner_id: Optional[str] = None
    size_bytes: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GalleryItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    status: Optional[str] = None
    display_order: Optional[int] = None
    event_id: Optional[str] = None
    partner_id: Optional[str] = None


class UploadItemResult(BaseModel):
    file_name: str
    success: bool
    item: Optional[GalleryItemResponse] = None
    error: Optional[str] = None
    code: Optional[str] = None
    steps: list[StepOutcomeSchema] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class BatchUploadResponse(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[UploadItemResult]

    model_config = ConfigDict(from_attributes=True)


class ReplaceFileResponse(BaseModel):
    item: GalleryItemResponse
    steps: list[StepOutcomeSchema] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class DeleteResponse(BaseModel):
    success: bool
    steps: list[StepOutcomeSchema] = Field(default_factory=list)


class BatchDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1, max_length=500)


class DeleteItemResult(BaseModel):
    id: str
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BatchDeleteResponse(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[DeleteItemResult]

    model_config = ConfigDict(from_attributes=True)


class GalleryListResponse(BaseModel):
    data: list[GalleryItemResponse]
    total: int
    page: int
    limit: int
    total_pages: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StorageStatsResponse(BaseModel):
    total_files: int
    total_size: int
    by_category: dict[str, int]
    by_status: dict[str, int]
    recent_uploads: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LargestFile(BaseModel):
    path: str
    size: int


class OldestFile(BaseModel):
    path: str
    created: datetime


class StorageAnalyticsResponse(BaseModel):
    total_size: int
    file_count: int
    average_file_size: float
    largest_file: Optional[LargestFile] = None
    oldest_file: Optional[OldestFile] = None
    by_extension: dict[str, int]
    by_day: dict[str, int]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuotaResponse(BaseModel):
    user_id: str
    quota_bytes: int
    used_bytes: int
    remaining_bytes: int
    percent_used: float

    model_config = ConfigDict(from_attributes=True)


class PermissionsResponse(BaseModel):
    role: str
    capabilities: dict[str, bool]


class ConsistencyIssueSchema(BaseModel):
    type: str
    path: Optional[str] = None
    item_id: Optional[str] = None
    message: str

    model_config = ConfigDict(from_attributes=True)


class ConsistencyResponse(BaseModel):
    issues: list[ConsistencyIssueSchema]
    count: int
    errors: list[str] = Field(default_factory=list)
    truncated: bool = False


class OrphansResponse(BaseModel):
    orphans: list[str]
    count: int


class CleanupErrorSchema(BaseModel):
    path: str
    error: str

    model_config = ConfigDict(from_attributes=True)


class CleanupResponse(BaseModel):
    attempted: int
    deleted: int
    errors: list[CleanupErrorSchema]

    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    status: Literal["healthy", "warning", "error"]
    issues: list[str]
    recommendations: list[str]

    model_config = ConfigDict(from_attributes=True)


class BackupItemSchema(BaseModel):
    id: Optional[str] = None
    storage_path: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class BackupManifestSchema(BaseModel):
    timestamp: str
    bucket: str
    file_count: int
    total_size: int
    items: list[BackupItemSchema]

    model_config = ConfigDict(from_attributes=True)


class RestoreResponse(BaseModel):
    restored: int
    failed: int
    errors: list[str]

    model_config = ConfigDict(from_attributes=True)


class AuditEntryResponse(BaseModel):
    id: str
    action: str
    bucket_name: str
    file_path: str
    success: bool
    user_id: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./gallery.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24


class StorageSettings(BaseModel):
    """Object store layout. Objects live under ``root_dir / bucket``."""

    root_dir: Path = Field(default=Path("storage/objects"))
    bucket: str = "wildout-images"
    base_path: str = "moments"
    thumbnails_dir: str = "thumbnails"
    public_base_url: str = "http://localhost:8000/media"
    media_mount_path: str = "/media"


class GallerySettings(BaseModel):
    max_file_size: int = 20 * MIB
    allowed_mime_types: tuple[str, ...] = (
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
        "image/svg+xml",
    )
    thumbnail_width: int = 300
    thumbnail_height: int = 300
    optimized_max_width: int = 1920
    optimized_max_height: int = 1080
    compression_quality: int = Field(default=85, ge=1, le=100)
    watermark_text: str = "WildOut Project"
    watermark_opacity: float = Field(default=0.3, ge=0.0, le=1.0)
    watermark_position: Literal["top-left", "top-right", "bottom-left", "bottom-right", "center"] = "bottom-right"
    default_page_size: int = 20
    max_page_size: int = 100


class QuotaSettings(BaseModel):
    default_quota_bytes: int = 100 * MIB


class RateLimitSettings(BaseModel):
    upload_limit: int = 30
    upload_window_ms: int = 60_000
    delete_limit: int = 60
    delete_window_ms: int = 60_000


class ConsistencySettings(BaseModel):
    orphan_grace_minutes: int = 10
    list_page_size: int = 1000
    scan_limit: int = 10_000
    auto_cleanup_interval_minutes: int = 0


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Gallery Asset Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    storage: StorageSettings = StorageSettings()
    gallery: GallerySettings = GallerySettings()
    quota: QuotaSettings = QuotaSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    consistency: ConsistencySettings = ConsistencySettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self.security.access_token_expire_minutes


@lru_cache()
def get_settings() -> Settings:
    return Settings()

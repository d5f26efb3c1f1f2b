"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gallery.core.config import Settings, get_settings
from gallery.infrastructure.database.session import get_session_factory
from gallery.infrastructure.ratelimit import InMemoryCounterStore
from gallery.infrastructure.storage import LocalObjectStore, ObjectStore
from gallery.modules.assets.imaging import ImageProcessor
from gallery.modules.assets.validation import FileValidator
from gallery.modules.audit.service import AuditLogger
from gallery.modules.ratelimits import CounterStore, RateLimiter


@dataclass(slots=True)
class ApplicationContainer:
    """Process-wide singletons shared by every request."""

    settings: Settings
    store: ObjectStore
    counter_store: CounterStore
    rate_limiter: RateLimiter
    validator: FileValidator
    imaging: ImageProcessor
    audit: AuditLogger

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        store: Optional[ObjectStore] = None,
        counter_store: Optional[CounterStore] = None,
    ) -> "ApplicationContainer":
        gallery = settings.gallery
        store = store or LocalObjectStore(
            settings.storage.root_dir,
            settings.storage.bucket,
            settings.storage.public_base_url,
        )
        counter_store = counter_store or InMemoryCounterStore()
        return cls(
            settings=settings,
            store=store,
            counter_store=counter_store,
            rate_limiter=RateLimiter(counter_store),
            validator=FileValidator(gallery.max_file_size, gallery.allowed_mime_types),
            imaging=ImageProcessor(
                max_width=gallery.optimized_max_width,
                max_height=gallery.optimized_max_height,
                quality=gallery.compression_quality,
                thumbnail_size=(gallery.thumbnail_width, gallery.thumbnail_height),
            ),
            audit=AuditLogger(session_factory or get_session_factory(), settings.storage.bucket),
        )


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer.build(get_settings())


__all__ = ["ApplicationContainer", "get_container"]

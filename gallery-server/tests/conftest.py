"""Pytest configuration and fixtures for the gallery server tests."""

import io
import os
import tempfile
from pathlib import Path

# Settings are cached on first use, so the environment must be in place
# before anything imports the application.
_RUNTIME_DIR = Path(tempfile.mkdtemp(prefix="gallery-tests-"))
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE__URL", f"sqlite+aiosqlite:///{_RUNTIME_DIR / 'app.db'}")
os.environ.setdefault("STORAGE__ROOT_DIR", str(_RUNTIME_DIR / "objects"))
os.environ.setdefault("STORAGE__PUBLIC_BASE_URL", "http://testserver/media")
os.environ.setdefault("SECURITY__SECRET_KEY", "test-secret-key")
os.environ.setdefault("CONSISTENCY__ORPHAN_GRACE_MINUTES", "0")

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gallery.core.config import MIB, RateLimitSettings
from gallery.db import models  # noqa: F401
from gallery.infrastructure.database.base import Base
from gallery.infrastructure.database.repositories import SqlCatalogStore
from gallery.infrastructure.ratelimit import InMemoryCounterStore
from gallery.infrastructure.storage import LocalObjectStore
from gallery.modules.accounts import AccountCreateInput
from gallery.modules.accounts.service import AccountService
from gallery.modules.assets import IncomingFile
from gallery.modules.assets.imaging import ImageProcessor
from gallery.modules.assets.pipeline import UploadPipeline
from gallery.modules.assets.service import GalleryService
from gallery.modules.assets.validation import FileValidator
from gallery.modules.audit.service import AuditLogger
from gallery.modules.common import StorageError
from gallery.modules.permissions import PermissionGate
from gallery.modules.quotas import QuotaManager
from gallery.modules.ratelimits import RateLimiter

ALLOWED_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif", "image/svg+xml")
BUCKET = "test-bucket"
BASE_PATH = "moments"


def make_image(fmt: str = "PNG", size: tuple[int, int] = (64, 48), color: str = "orange") -> bytes:
    """Encode a solid-colour image with Pillow."""
    buffer = io.BytesIO()
    mode = "RGB" if fmt == "JPEG" else "RGBA"
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_file(
    name: str = "photo.png",
    content_type: str = "image/png",
    size: int | None = None,
    data: bytes | None = None,
) -> IncomingFile:
    """Build an upload; ``size`` pads a real PNG with trailing bytes."""
    payload = data if data is not None else make_image()
    if size is not None and size > len(payload):
        payload = payload + b"\0" * (size - len(payload))
    return IncomingFile(file_name=name, content_type=content_type, data=payload)


class FlakyStore(LocalObjectStore):
    """Local store whose writes and deletes can be made to fail."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fail_put = False
        self.fail_remove = False
        self.fail_list = False
        self.removed: list[str] = []

    async def put(self, path, data, content_type):
        if self.fail_put:
            raise StorageError("object store unavailable")
        return await super().put(path, data, content_type)

    async def remove(self, paths):
        if self.fail_remove:
            raise StorageError("delete rejected")
        self.removed.extend(paths)
        await super().remove(paths)

    async def list(self, prefix, **kwargs):
        if self.fail_list:
            raise StorageError("listing failed")
        return await super().list(prefix, **kwargs)


class RecordingAudit:
    """Audit double that records calls and can report failure."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.calls: list[tuple] = []

    async def log_operation(self, action, path, metadata=None, success=True, error=None, user_id=None):
        self.calls.append((action, path, success, user_id))
        return self.succeed


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Per-test SQLite database with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gallery.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(tmp_path):
    return FlakyStore(tmp_path / "objects", BUCKET, "http://testserver/media")


@pytest.fixture
def validator():
    return FileValidator(20 * MIB, ALLOWED_TYPES)


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def pipeline(store, validator, audit):
    return UploadPipeline(
        store,
        validator,
        ImageProcessor(),
        base_path=BASE_PATH,
        watermark_text="WildOut Project",
        audit=audit,
    )


@pytest.fixture
def accounts(session):
    return AccountService.with_session(session, default_quota_bytes=100 * MIB)


@pytest.fixture
def catalog(session):
    return SqlCatalogStore(session)


@pytest.fixture
def make_account(accounts):
    """Factory creating accounts with a role and optional quota."""

    async def _make(username: str, role: str = "contributor", quota_bytes: int | None = None):
        return await accounts.create_account(
            AccountCreateInput(username=username, password="secret123", role=role, quota_bytes=quota_bytes)
        )

    return _make


@pytest.fixture
def rate_limiter():
    return RateLimiter(InMemoryCounterStore())


@pytest.fixture
def gallery_service(catalog, store, pipeline, validator, accounts, rate_limiter, audit):
    return GalleryService(
        catalog=catalog,
        store=store,
        pipeline=pipeline,
        validator=validator,
        quotas=QuotaManager(accounts),
        rate_limiter=rate_limiter,
        permissions=PermissionGate(accounts, catalog),
        rate_limits=RateLimitSettings(),
        audit=audit,
    )


@pytest.fixture
def audit_logger(session_factory):
    return AuditLogger(session_factory, BUCKET)

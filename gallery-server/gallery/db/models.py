"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import JSON, BigInteger, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gallery.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """Identity/profile row: role plus the per-user storage quota."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="contributor")
    is_active = Column(Boolean, default=True)
    email = Column(String(100), unique=True)
    quota_bytes = Column(BigInteger, nullable=True)
    used_bytes = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True))


class GalleryItem(Base):
    __tablename__ = "gallery_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text)
    storage_path = Column(String(500), unique=True, index=True)
    public_url = Column(String(1000), nullable=False, default="")
    thumbnail_path = Column(String(500), index=True)
    thumbnail_url = Column(String(1000))
    category = Column(String(20), nullable=False, default="general", index=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="published", index=True)
    processing_status = Column(String(20), nullable=False, default="ready", index=True)
    display_order = Column(Integer, nullable=False, default=0)
    event_id = Column(String(36), nullable=True, index=True)
    partner_id = Column(String(36), nullable=True, index=True)
    size_bytes = Column(BigInteger, nullable=False, default=0)
    file_metadata = Column(JSON, nullable=False, default=dict)
    created_by = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("Account")


class StorageAuditLog(Base):
    __tablename__ = "storage_audit_log"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    action = Column(String(20), nullable=False, index=True)
    bucket_name = Column(String(100), nullable=False)
    file_path = Column(String(500), nullable=False, default="")
    file_size = Column(BigInteger)
    mime_type = Column(String(100))
    metadata_json = Column("metadata", JSON)
    success = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

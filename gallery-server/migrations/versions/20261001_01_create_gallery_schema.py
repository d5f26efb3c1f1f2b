"""create accounts, gallery items and storage audit tables

Revision ID: 20261001_01
Revises:
Create Date: 2026-10-01 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261001_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="contributor"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("quota_bytes", sa.BigInteger(), nullable=True),
        sa.Column("used_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"], unique=True)

    op.create_table(
        "gallery_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("storage_path", sa.String(length=500), nullable=True),
        sa.Column("public_url", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("thumbnail_path", sa.String(length=500), nullable=True),
        sa.Column("thumbnail_url", sa.String(length=1000), nullable=True),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="general"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="published"),
        sa.Column("processing_status", sa.String(length=20), nullable=False, server_default="ready"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("event_id", sa.String(length=36), nullable=True),
        sa.Column("partner_id", sa.String(length=36), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("file_metadata", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["created_by"], ["accounts.id"]),
    )
    op.create_index("ix_gallery_items_storage_path", "gallery_items", ["storage_path"], unique=True)
    op.create_index("ix_gallery_items_thumbnail_path", "gallery_items", ["thumbnail_path"])
    op.create_index("ix_gallery_items_category", "gallery_items", ["category"])
    op.create_index("ix_gallery_items_status", "gallery_items", ["status"])
    op.create_index("ix_gallery_items_processing_status", "gallery_items", ["processing_status"])
    op.create_index("ix_gallery_items_event_id", "gallery_items", ["event_id"])
    op.create_index("ix_gallery_items_partner_id", "gallery_items", ["partner_id"])
    op.create_index("ix_gallery_items_created_by", "gallery_items", ["created_by"])

    op.create_table(
        "storage_audit_log",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("bucket_name", sa.String(length=100), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_storage_audit_log_user_id", "storage_audit_log", ["user_id"])
    op.create_index("ix_storage_audit_log_action", "storage_audit_log", ["action"])
    op.create_index("ix_storage_audit_log_created_at", "storage_audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_storage_audit_log_created_at", table_name="storage_audit_log")
    op.drop_index("ix_storage_audit_log_action", table_name="storage_audit_log")
    op.drop_index("ix_storage_audit_log_user_id", table_name="storage_audit_log")
    op.drop_table("storage_audit_log")

    for column in (
        "created_by",
        "partner_id",
        "event_id",
        "processing_status",
        "status",
        "category",
        "thumbnail_path",
        "storage_path",
    ):
        op.drop_index(f"ix_gallery_items_{column}", table_name="gallery_items")
    op.drop_table("gallery_items")

    op.drop_index("ix_accounts_username", table_name="accounts")
    op.drop_table("accounts")

"""Tests for the audit trail writer."""

from conftest import BUCKET
from gallery.modules.audit.service import AuditLogger


class BrokenSessionFactory:
    def __call__(self):
        raise RuntimeError("database unavailable")


async def test_log_operation_persists_entry(audit_logger):
    ok = await audit_logger.log_operation(
        "upload", "moments/u1/a.png", {"size": 123, "mime_type": "image/png"}, user_id="u1"
    )
    entries = await audit_logger.list_operations()

    assert ok is True
    assert len(entries) == 1
    entry = entries[0]
    assert (entry.action, entry.file_path, entry.bucket_name) == ("upload", "moments/u1/a.png", BUCKET)
    assert entry.file_size == 123
    assert entry.mime_type == "image/png"
    assert entry.success is True


async def test_failed_operations_are_recorded(audit_logger):
    await audit_logger.log_operation("delete", "moments/u1/a.png", success=False, error="delete rejected")
    [entry] = await audit_logger.list_operations(action="delete")
    assert entry.success is False
    assert entry.error_message == "delete rejected"


async def test_filters_by_user(audit_logger):
    await audit_logger.log_operation("upload", "a", user_id="u1")
    await audit_logger.log_operation("upload", "b", user_id="u2")
    entries = await audit_logger.list_operations(user_id="u2")
    assert [entry.file_path for entry in entries] == ["b"]


async def test_log_operation_never_raises():
    logger = AuditLogger(BrokenSessionFactory(), BUCKET)
    assert await logger.log_operation("upload", "moments/u1/a.png") is False

"""Tests for orphan detection, cleanup, health and backup/restore."""

import os
import time
from datetime import timedelta

import pytest

from conftest import BASE_PATH, BUCKET
from gallery.modules.consistency.backup import BackupManager
from gallery.modules.common import ValidationError
from gallery.modules.consistency.service import ConsistencyChecker


@pytest.fixture
def checker(store, catalog, audit):
    return ConsistencyChecker(store, catalog, prefix=BASE_PATH, page_size=2, grace_period=timedelta(0), audit=audit)


async def put(store, name: str) -> str:
    return await store.put(f"{BASE_PATH}/u1/{name}", b"data", "image/png")


async def register(catalog, owner_id: str, path: str, **values):
    return await catalog.create(created_by=owner_id, values={"title": path, "storage_path": path, **values})


async def test_objects_without_rows_are_orphans(checker, store, catalog, make_account):
    owner = await make_account("alice")
    a, b, c = [await put(store, name) for name in ("a.png", "b.png", "c.png")]
    await register(catalog, owner.id, a)
    await register(catalog, owner.id, c)

    assert await checker.find_orphaned_files() == [b]


async def test_thumbnails_count_as_referenced(checker, store, catalog, make_account):
    owner = await make_account("alice")
    path = await put(store, "a.png")
    thumb = await store.put(f"{BASE_PATH}/thumbnails/u1/a_thumb.jpg", b"t", "image/jpeg")
    await register(catalog, owner.id, path, thumbnail_path=thumb)

    assert await checker.find_orphaned_files() == []


async def test_recent_objects_are_inside_the_grace_period(store, catalog, tmp_path):
    checker = ConsistencyChecker(store, catalog, prefix=BASE_PATH, grace_period=timedelta(minutes=10))
    fresh = await put(store, "fresh.png")
    stale = await put(store, "stale.png")
    past = time.time() - 3600
    os.utime(tmp_path / "objects" / BUCKET / stale, (past, past))

    orphans = await checker.find_orphaned_files()
    assert orphans == [stale]
    assert fresh not in orphans


async def test_cleanup_removes_orphans_and_is_idempotent(checker, store, audit):
    orphan = await put(store, "orphan.png")

    first = await checker.cleanup_orphaned_files()
    second = await checker.cleanup_orphaned_files()

    assert (first.attempted, first.deleted, first.errors) == (1, 1, [])
    assert (second.attempted, second.deleted) == (0, 0)
    assert not await store.exists(orphan)
    assert [call[0] for call in audit.calls] == ["cleanup"]


async def test_cleanup_reports_per_path_errors(checker, store):
    await put(store, "orphan.png")
    store.fail_remove = True

    report = await checker.cleanup_orphaned_files()
    assert report.attempted == 1
    assert report.deleted == 0
    assert report.errors[0].path.endswith("orphan.png")


async def test_cleanup_survives_listing_failure(checker, store):
    store.fail_list = True
    report = await checker.cleanup_orphaned_files()
    assert report.attempted == 0
    assert report.errors[0].error == "listing failed"


async def test_check_consistency_finds_all_issue_types(checker, store, catalog, make_account):
    owner = await make_account("alice")
    orphan = await put(store, "orphan.png")
    present = await put(store, "present.png")
    await register(catalog, owner.id, present)
    dangling = await register(catalog, owner.id, f"{BASE_PATH}/u1/gone.png")
    failed = await register(catalog, owner.id, present.replace("present", "broken"), processing_status="failed")

    report = await checker.check_consistency()

    assert report.errors == []
    assert [issue.path for issue in report.of_type("orphaned_file")] == [orphan]
    missing = {issue.item_id for issue in report.of_type("missing_file")}
    assert missing == {dangling.id, failed.id}
    assert [issue.item_id for issue in report.of_type("processing_failed")] == [failed.id]


async def test_listing_failure_is_reported_without_orphans(checker, store):
    await put(store, "orphan.png")
    store.fail_list = True

    report = await checker.check_consistency()
    assert report.errors == ["Failed to list objects: listing failed"]
    assert report.of_type("orphaned_file") == []


async def test_scan_limit_truncates(store, catalog):
    checker = ConsistencyChecker(store, catalog, prefix=BASE_PATH, page_size=2, scan_limit=3, grace_period=timedelta(0))
    for name in ("a.png", "b.png", "c.png", "d.png"):
        await put(store, name)

    objects, truncated = await checker.list_objects()
    assert len(objects) == 3
    assert truncated


async def test_health_levels(checker, store, catalog, make_account):
    owner = await make_account("alice")
    assert (await checker.get_storage_health()).status == "healthy"

    await put(store, "orphan.png")
    warning = await checker.get_storage_health()
    assert warning.status == "warning"
    assert "1 orphaned files found" in warning.issues

    await register(catalog, owner.id, f"{BASE_PATH}/u1/gone.png")
    await register(catalog, owner.id, f"{BASE_PATH}/u1/bad.png", processing_status="failed")
    assert (await checker.get_storage_health()).status == "error"


async def test_health_recommends_checking_uploads_when_idle(checker):
    health = await checker.get_storage_health()
    assert "No recent uploads - verify upload functionality" in health.recommendations


async def test_backup_and_restore(store, catalog, make_account):
    owner = await make_account("alice")
    kept = await put(store, "kept.png")
    lost = await put(store, "lost.png")
    item = await register(catalog, owner.id, kept, category="team", tags=["b", "a"], size_bytes=4)
    await register(catalog, owner.id, lost)

    manager = BackupManager(store, catalog)
    manifest = await manager.export_backup()
    assert manifest.bucket == BUCKET
    assert manifest.file_count == 2
    assert manifest.total_size == 4

    await catalog.delete(item.id)
    await store.remove([lost])
    report = await manager.restore_backup(manifest, owner.id)

    assert report.restored == 1
    assert report.failed == 1
    assert report.errors == [f"File not found in storage: {lost}"]
    restored = await catalog.find_by_storage_path(kept)
    assert restored.category == "team"
    assert restored.tags == ["a", "b"]
    assert restored.created_by == owner.id


async def test_restore_rejects_manifest_without_items(store, catalog):
    with pytest.raises(ValidationError):
        await BackupManager(store, catalog).restore_backup({"timestamp": "x"}, "u1")


async def test_cleanup_without_audit(store, catalog):
    checker = ConsistencyChecker(store, catalog, prefix=BASE_PATH, grace_period=timedelta(0))
    await put(store, "orphan.png")
    assert (await checker.cleanup_orphaned_files()).deleted == 1

"""Tests for gallery asset use cases."""

import pytest

from conftest import BASE_PATH, make_file
from gallery.core.config import RateLimitSettings
from gallery.modules.accounts import AccountUpdateInput
from gallery.modules.assets import AssetAttributes, UploadOptions
from gallery.modules.common import StorageError, StorageErrorKind, ValidationError

PLAIN = UploadOptions(optimize=False, watermark=False, generate_thumbnail=False)


async def stored_paths(store):
    return [obj.path for obj in await store.list(BASE_PATH, limit=1000)]


async def used_bytes(accounts, user_id):
    return (await accounts.get_quota(user_id)).used_bytes


async def upload(service, user, name="team_photo.png", **attrs):
    return await service.create_asset(make_file(name), user.id, AssetAttributes(**attrs), PLAIN)


async def test_create_asset_writes_object_row_and_usage(gallery_service, make_account, accounts, store, catalog):
    alice = await make_account("alice")
    uploaded = await upload(gallery_service, alice, category="team")

    item = uploaded.item
    assert item.title == "team photo"
    assert item.category == "team"
    assert item.created_by == alice.id
    assert item.storage_path == uploaded.upload.path
    assert item.size_bytes == uploaded.upload.size
    assert await catalog.get(item.id) is not None
    assert await stored_paths(store) == [item.storage_path]
    assert await used_bytes(accounts, alice.id) == item.size_bytes
    assert ("quota_usage", "ok") in [(step.name, step.status) for step in uploaded.steps]


async def test_viewer_cannot_upload(gallery_service, make_account, store):
    viewer = await make_account("vera", role="viewer")
    with pytest.raises(StorageError) as excinfo:
        await upload(gallery_service, viewer)
    assert excinfo.value.kind is StorageErrorKind.PERMISSION_DENIED
    assert await stored_paths(store) == []


async def test_quota_exceeded_blocks_upload(gallery_service, make_account, store):
    alice = await make_account("alice", quota_bytes=10)
    with pytest.raises(StorageError) as excinfo:
        await upload(gallery_service, alice)
    assert excinfo.value.kind is StorageErrorKind.QUOTA_EXCEEDED
    assert await stored_paths(store) == []


async def test_rate_limit_blocks_upload(gallery_service, make_account):
    alice = await make_account("alice")
    gallery_service.rate_limits = RateLimitSettings(upload_limit=1)

    await upload(gallery_service, alice)
    with pytest.raises(StorageError) as excinfo:
        await upload(gallery_service, alice)
    assert excinfo.value.kind is StorageErrorKind.RATE_LIMITED
    assert excinfo.value.details["retry_after"] > 0


async def test_unknown_category_is_rejected(gallery_service, make_account):
    alice = await make_account("alice")
    with pytest.raises(ValidationError):
        await upload(gallery_service, alice, category="holiday")


async def test_catalog_failure_removes_the_object(gallery_service, make_account, accounts, catalog, store, monkeypatch):
    alice = await make_account("alice")

    async def broken_create(**kwargs):
        raise StorageError("Failed to save gallery item: disk I/O error")

    monkeypatch.setattr(catalog, "create", broken_create)
    with pytest.raises(StorageError) as excinfo:
        await upload(gallery_service, alice)

    assert excinfo.value.details["compensated"] is True
    assert await stored_paths(store) == []
    assert await used_bytes(accounts, alice.id) == 0


async def test_delete_removes_row_objects_and_usage(gallery_service, make_account, accounts, catalog, store, audit):
    alice = await make_account("alice")
    item = (await upload(gallery_service, alice)).item

    steps = await gallery_service.delete_asset(item.id, alice.id)

    assert [(step.name, step.status) for step in steps] == [("remove_objects", "ok"), ("quota_usage", "ok")]
    assert await catalog.get(item.id) is None
    assert await stored_paths(store) == []
    assert await used_bytes(accounts, alice.id) == 0
    assert audit.calls[-1][:3] == ("delete", item.storage_path, True)


async def test_delete_with_store_failure_leaves_orphan(gallery_service, make_account, catalog, store):
    alice = await make_account("alice")
    item = (await upload(gallery_service, alice)).item
    store.fail_remove = True

    steps = await gallery_service.delete_asset(item.id, alice.id)

    assert steps[0].status == "failed"
    assert await catalog.get(item.id) is None
    assert await stored_paths(store) == [item.storage_path]


async def test_delete_someone_elses_item_is_denied(gallery_service, make_account):
    alice = await make_account("alice")
    bob = await make_account("bob")
    item = (await upload(gallery_service, alice)).item

    with pytest.raises(StorageError) as denied:
        await gallery_service.delete_asset(item.id, bob.id)
    with pytest.raises(StorageError) as missing:
        await gallery_service.delete_asset("no-such-item", bob.id)

    assert denied.value.kind is StorageErrorKind.PERMISSION_DENIED
    assert missing.value.kind is StorageErrorKind.NOT_FOUND


async def test_replace_file_swaps_objects_and_usage(gallery_service, make_account, accounts, store):
    alice = await make_account("alice")
    original = (await upload(gallery_service, alice)).item
    bigger = make_file("new.png", size=original.size_bytes + 500)

    replaced = await gallery_service.replace_asset_file(original.id, bigger, alice.id, PLAIN)

    assert replaced.item.id == original.id
    assert replaced.item.storage_path != original.storage_path
    assert replaced.item.size_bytes == bigger.size
    assert await stored_paths(store) == [replaced.item.storage_path]
    assert await used_bytes(accounts, alice.id) == bigger.size
    assert ("previous_file", "ok") in [(step.name, step.status) for step in replaced.steps]


async def test_replace_by_admin_checks_the_owners_quota(gallery_service, make_account, accounts, store):
    alice = await make_account("alice")
    admin = await make_account("root", role="admin")
    original = (await upload(gallery_service, alice)).item
    await accounts.update_account(alice.id, AccountUpdateInput(quota_bytes=original.size_bytes))
    bigger = make_file("new.png", size=original.size_bytes + 5000)

    with pytest.raises(StorageError) as excinfo:
        await gallery_service.replace_asset_file(original.id, bigger, admin.id, PLAIN)

    assert excinfo.value.kind is StorageErrorKind.QUOTA_EXCEEDED
    assert await stored_paths(store) == [original.storage_path]
    assert await used_bytes(accounts, alice.id) == original.size_bytes


async def test_replace_by_admin_ignores_the_admins_own_quota(gallery_service, make_account, accounts):
    alice = await make_account("alice")
    admin = await make_account("root", role="admin", quota_bytes=1)
    original = (await upload(gallery_service, alice)).item
    bigger = make_file("new.png", size=original.size_bytes + 500)

    replaced = await gallery_service.replace_asset_file(original.id, bigger, admin.id, PLAIN)

    assert replaced.item.created_by == alice.id
    assert await used_bytes(accounts, alice.id) == bigger.size
    assert await used_bytes(accounts, admin.id) == 0


async def test_update_asset_fields(gallery_service, make_account):
    alice = await make_account("alice")
    item = (await upload(gallery_service, alice)).item

    updated = await gallery_service.update_asset(
        item.id, alice.id, {"title": "Launch night", "tags": ["launch", "night"], "status": "archived"}
    )
    assert updated.title == "Launch night"
    assert updated.tags == ["launch", "night"]
    assert updated.status == "archived"


async def test_update_rejects_unknown_fields(gallery_service, make_account):
    alice = await make_account("alice")
    item = (await upload(gallery_service, alice)).item
    with pytest.raises(ValidationError):
        await gallery_service.update_asset(item.id, alice.id, {"storage_path": "elsewhere.png"})


async def test_status_cannot_move_backwards_without_manage(gallery_service, make_account):
    alice = await make_account("alice")
    admin = await make_account("root", role="admin")
    item = (await upload(gallery_service, alice)).item

    with pytest.raises(StorageError) as excinfo:
        await gallery_service.update_asset(item.id, alice.id, {"status": "draft"})
    assert excinfo.value.kind is StorageErrorKind.PERMISSION_DENIED

    restored = await gallery_service.update_asset(item.id, admin.id, {"status": "draft"})
    assert restored.status == "draft"


async def test_list_assets_filters_and_paginates(gallery_service, make_account):
    alice = await make_account("alice")
    await upload(gallery_service, alice, "sunset.png", category="event")
    await upload(gallery_service, alice, "crew.png", category="team")
    await upload(gallery_service, alice, "draft.png", category="team", status="draft")

    published = await gallery_service.list_assets()
    teams = await gallery_service.list_assets(category="team")
    searched = await gallery_service.list_assets(search="sun")
    paged = await gallery_service.list_assets(page=2, limit=1)
    everything = await gallery_service.list_assets(status=None, limit=500)

    assert published.total == 2
    assert [item.title for item in teams.data] == ["crew"]
    assert [item.title for item in searched.data] == ["sunset"]
    assert (paged.page, paged.limit, len(paged.data), paged.total_pages) == (2, 1, 1, 2)
    assert everything.total == 3
    assert everything.limit == 100


async def test_storage_stats(gallery_service, make_account):
    alice = await make_account("alice")
    first = (await upload(gallery_service, alice, "a.png", category="event")).item
    second = (await upload(gallery_service, alice, "b.png", category="team")).item

    stats = await gallery_service.get_storage_stats()
    assert stats["totalFiles"] == 2
    assert stats["totalSize"] == first.size_bytes + second.size_bytes
    assert stats["byCategory"] == {"event": 1, "team": 1}
    assert stats["byStatus"] == {"published": 2}
    assert stats["recentUploads"] == 2


async def test_storage_analytics(gallery_service, make_account):
    alice = await make_account("alice")
    small = (await upload(gallery_service, alice, "a.png")).item
    big = make_file("big.JPG", content_type="image/jpeg", size=small.size_bytes + 100)
    await gallery_service.create_asset(big, alice.id, AssetAttributes(), PLAIN)

    analytics = await gallery_service.get_storage_analytics()
    assert analytics["fileCount"] == 2
    assert analytics["totalSize"] == 2 * small.size_bytes + 100
    assert analytics["averageFileSize"] == small.size_bytes + 50
    assert analytics["largestFile"]["size"] == small.size_bytes + 100
    assert analytics["largestFile"]["path"].endswith("big.JPG")
    assert analytics["byExtension"] == {"png": 1, "jpg": 1}
    assert sum(analytics["byDay"].values()) == 2
    assert analytics["oldestFile"]["path"] in {small.storage_path, analytics["largestFile"]["path"]}


async def test_storage_analytics_of_empty_catalog(gallery_service):
    analytics = await gallery_service.get_storage_analytics()
    assert analytics["fileCount"] == 0
    assert analytics["averageFileSize"] == 0
    assert analytics["largestFile"] is None
    assert analytics["oldestFile"] is None
    assert analytics["byExtension"] == {}


async def test_get_missing_asset(gallery_service):
    with pytest.raises(StorageError) as excinfo:
        await gallery_service.get_asset("nope")
    assert excinfo.value.kind is StorageErrorKind.NOT_FOUND

"""Tests for sequential batch uploads and deletes."""

import pytest

from conftest import make_file
from gallery.core.config import MIB
from gallery.modules.assets import UploadOptions
from gallery.modules.assets.batch import BatchCoordinator

PLAIN = UploadOptions(optimize=False, watermark=False, generate_thumbnail=False)


@pytest.fixture
def coordinator(gallery_service):
    return BatchCoordinator(gallery_service)


async def test_batch_isolates_failing_items(coordinator, make_account):
    alice = await make_account("alice")
    files = [
        make_file("one.png", size=2 * MIB),
        make_file("two.png", size=25 * MIB),
        make_file("three.png", size=3 * MIB),
    ]
    progress = []

    summary = await coordinator.process_batch(
        files, alice.id, options=PLAIN, on_progress=lambda done, total, name: progress.append((done, total, name))
    )

    assert (summary.total, summary.successful, summary.failed) == (3, 2, 1)
    assert [result.file_name for result in summary.results] == ["one.png", "two.png", "three.png"]
    assert [result.success for result in summary.results] == [True, False, True]
    failed = summary.results[1]
    assert failed.code == "VALIDATION_ERROR"
    assert "20MB" in failed.error
    assert progress == [(1, 3, "one.png"), (2, 3, "two.png"), (3, 3, "three.png")]


async def test_batch_quota_counts_earlier_items(coordinator, make_account):
    alice = await make_account("alice", quota_bytes=5 * MIB)
    files = [make_file(f"{index}.png", size=2 * MIB) for index in range(3)]

    summary = await coordinator.process_batch(files, alice.id, options=PLAIN)

    assert [result.success for result in summary.results] == [True, True, False]
    assert summary.results[2].code == "QUOTA_EXCEEDED"


async def test_delete_batch_reports_each_item(coordinator, gallery_service, make_account, catalog):
    alice = await make_account("alice")
    bob = await make_account("bob")
    own = [
        (await gallery_service.create_asset(make_file(f"{name}.png"), alice.id, options=PLAIN)).item
        for name in ("a", "b")
    ]
    foreign = (await gallery_service.create_asset(make_file("c.png"), bob.id, options=PLAIN)).item

    summary = await coordinator.delete_batch([own[0].id, foreign.id, "ghost", own[1].id], alice.id)

    assert [(result.id, result.success, result.code) for result in summary.results] == [
        (own[0].id, True, None),
        (foreign.id, False, "not_owner"),
        ("ghost", False, "not_found"),
        (own[1].id, True, None),
    ]
    assert await catalog.get(foreign.id) is not None
    assert await catalog.get(own[0].id) is None

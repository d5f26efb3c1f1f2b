"""Tests for the role/ownership permission gate."""

import pytest

from gallery.modules.common import StorageError, StorageErrorKind
from gallery.modules.permissions import PermissionGate, can_transition, capabilities_for


@pytest.fixture
def gate(accounts, catalog):
    return PermissionGate(accounts, catalog)


@pytest.fixture
def add_item(catalog):
    async def _add(owner_id: str, name: str, status: str = "published"):
        return await catalog.create(
            created_by=owner_id,
            values={"title": name, "storage_path": f"moments/{owner_id}/{name}.png", "status": status},
        )

    return _add


async def test_contributor_can_edit_own_item(gate, make_account, add_item):
    alice = await make_account("alice")
    item = await add_item(alice.id, "mine")

    decision = await gate.validate_item_access(item.id, alice.id, "edit")
    assert decision.allowed
    assert decision.item.id == item.id


async def test_contributor_cannot_touch_someone_elses_item(gate, make_account, add_item):
    alice = await make_account("alice")
    bob = await make_account("bob")
    item = await add_item(alice.id, "not-bobs")

    decision = await gate.validate_item_access(item.id, bob.id, "delete")
    missing = await gate.validate_item_access("no-such-item", bob.id, "delete")

    assert not decision.allowed
    assert decision.code == "not_owner"
    assert missing.code == "not_found"


async def test_admin_manages_any_item(gate, make_account, add_item):
    alice = await make_account("alice")
    admin = await make_account("root", role="admin")
    item = await add_item(alice.id, "archived", status="archived")

    assert (await gate.validate_item_access(item.id, admin.id, "delete")).allowed


@pytest.mark.parametrize("action", ["edit", "delete"])
async def test_archived_items_are_read_only_for_owners(gate, make_account, add_item, action):
    alice = await make_account("alice")
    item = await add_item(alice.id, "old", status="archived")

    denied = await gate.validate_item_access(item.id, alice.id, action)
    view = await gate.validate_item_access(item.id, alice.id, "view")
    assert denied.code == "archived"
    assert view.allowed


async def test_ownership_is_checked_before_archival(gate, make_account, add_item):
    alice = await make_account("alice")
    bob = await make_account("bob")
    item = await add_item(alice.id, "old", status="archived")

    assert (await gate.validate_item_access(item.id, bob.id, "edit")).code == "not_owner"


async def test_viewer_lacks_mutating_capabilities(gate, make_account, add_item):
    alice = await make_account("alice")
    viewer = await make_account("vera", role="viewer")
    item = await add_item(alice.id, "photo")

    decision = await gate.validate_item_access(item.id, viewer.id, "edit")
    assert decision.code == "missing_capability"
    with pytest.raises(StorageError) as excinfo:
        await gate.require(viewer.id, "upload")
    assert excinfo.value.kind is StorageErrorKind.PERMISSION_DENIED


async def test_unknown_user_is_a_guest(gate):
    assert await gate.role_of("nobody") == "guest"
    assert not await gate.has_capability("nobody", "view")


async def test_batch_partitions_valid_and_invalid_items(gate, make_account, add_item):
    alice = await make_account("alice")
    bob = await make_account("bob")
    own = await add_item(alice.id, "a")
    foreign = await add_item(bob.id, "b")

    result = await gate.validate_batch_operation([own.id, foreign.id, "ghost", own.id], alice.id, "delete")

    assert not result.allowed
    assert result.valid_items == [own.id]
    assert [(invalid.id, invalid.code) for invalid in result.invalid_items] == [
        (foreign.id, "not_owner"),
        ("ghost", "not_found"),
    ]


async def test_batch_with_only_own_items_is_allowed(gate, make_account, add_item):
    alice = await make_account("alice")
    items = [await add_item(alice.id, name) for name in ("a", "b")]

    result = await gate.validate_batch_operation([item.id for item in items], alice.id, "edit")
    assert result.allowed
    assert result.invalid_items == []


async def test_empty_batch_is_not_allowed(gate, make_account):
    alice = await make_account("alice")
    result = await gate.validate_batch_operation([], alice.id, "delete")
    assert not result.allowed
    assert result.valid_items == []


async def test_permission_matrix(gate, make_account):
    editor = await make_account("ed", role="editor")
    matrix = await gate.permission_matrix(editor.id)
    assert matrix["role"] == "editor"
    assert matrix["capabilities"] == {
        "view": True,
        "upload": True,
        "edit": True,
        "delete": True,
        "manage": False,
    }


@pytest.mark.parametrize(
    "current, target, expected",
    [
        ("draft", "published", True),
        ("published", "archived", True),
        ("draft", "archived", True),
        ("published", "draft", False),
        ("archived", "published", False),
        ("published", "published", True),
        ("published", "deleted", False),
    ],
)
def test_status_transitions_without_manage(current, target, expected):
    assert can_transition(capabilities_for("contributor"), current, target) is expected


def test_manager_can_move_status_backwards():
    assert can_transition(capabilities_for("admin"), "archived", "draft")

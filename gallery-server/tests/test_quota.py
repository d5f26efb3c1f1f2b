"""Tests for per-user quota checks and usage bookkeeping."""

import pytest

from gallery.core.config import MIB
from gallery.modules.common import StorageError, StorageErrorKind, ValidationError
from gallery.modules.quotas import QuotaManager


@pytest.fixture
def quotas(accounts):
    return QuotaManager(accounts)


async def test_check_quota_against_used_bytes(quotas, make_account):
    account = await make_account("alice", quota_bytes=100)
    await quotas.update_usage(account.id, 90, "add")

    denied = await quotas.check_quota(account.id, 15)
    allowed = await quotas.check_quota(account.id, 10)

    assert not denied.allowed
    assert (denied.quota, denied.used) == (100, 90)
    assert allowed.allowed
    assert allowed.remaining == 10


async def test_ensure_quota_raises_quota_exceeded(quotas, make_account):
    account = await make_account("bob", quota_bytes=10)
    with pytest.raises(StorageError) as excinfo:
        await quotas.ensure_quota(account.id, 11)
    assert excinfo.value.kind is StorageErrorKind.QUOTA_EXCEEDED
    assert excinfo.value.details == {"quota": 10, "used": 0, "incoming": 11}


async def test_default_quota_applies_without_override(quotas, make_account):
    account = await make_account("carol")
    usage = await quotas.get_usage(account.id)
    assert usage.quota_bytes == 100 * MIB
    assert usage.used_bytes == 0
    assert usage.percent_used == 0


async def test_usage_never_goes_negative(quotas, make_account):
    account = await make_account("dave", quota_bytes=1000)
    await quotas.update_usage(account.id, 100, "add")
    usage = await quotas.update_usage(account.id, 250, "remove")
    assert usage.used_bytes == 0
    assert usage.remaining_bytes == 1000


async def test_usage_add_and_remove_round(quotas, make_account):
    account = await make_account("erin", quota_bytes=1000)
    await quotas.update_usage(account.id, 400, "add")
    await quotas.update_usage(account.id, 100, "add")
    usage = await quotas.update_usage(account.id, 150, "remove")
    assert usage.used_bytes == 350
    assert usage.percent_used == 35.0


async def test_unknown_user_is_denied(quotas):
    check = await quotas.check_quota("missing-user", 1)
    assert not check.allowed


async def test_update_usage_for_unknown_user(quotas):
    with pytest.raises(StorageError) as excinfo:
        await quotas.update_usage("missing-user", 10, "add")
    assert excinfo.value.kind is StorageErrorKind.NOT_FOUND


@pytest.mark.parametrize("size, op", [(-1, "add"), (10, "grow")])
async def test_update_usage_rejects_bad_input(quotas, make_account, size, op):
    account = await make_account("frank", quota_bytes=1000)
    with pytest.raises(ValidationError):
        await quotas.update_usage(account.id, size, op)

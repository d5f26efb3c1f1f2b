"""Domain services for account management.

``AccountService`` doubles as the identity/profile provider consumed by the
permission gate and the quota manager: it resolves ``user_id -> role`` and
``user_id -> QuotaRecord``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from gallery.core.crypto import hash_password, verify_password
from gallery.infrastructure.database.repositories.account_repository import SqlAccountRepository

from .exceptions import AccountAlreadyExistsError, AccountNotFoundError, InvalidRoleError
from .models import ROLES, Account, AccountCreateInput, AccountUpdateInput, QuotaRecord, UNSET
from .repository import AccountRepository


class AccountService:
    """Encapsulates core account use cases."""

    def __init__(self, repository: AccountRepository, default_quota_bytes: int | None = None) -> None:
        self._repository = repository
        self._default_quota_bytes = default_quota_bytes

    @classmethod
    def with_session(cls, session: AsyncSession, default_quota_bytes: int | None = None) -> "AccountService":
        return cls(SqlAccountRepository(session), default_quota_bytes)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def get_by_username(self, username: str) -> Account | None:
        return await self._repository.get_by_username(username)

    async def list_accounts(self) -> Sequence[Account]:
        return await self._repository.list_accounts()

    async def authenticate(self, username: str, password: str) -> Account | None:
        account = await self._repository.get_by_username(username)
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        _ensure_role(payload.role)
        existing = await self._repository.get_by_username(payload.username)
        if existing is not None:
            raise AccountAlreadyExistsError(f"Username already exists: {payload.username}")

        password_hash = hash_password(payload.password)
        return await self._repository.create_account(
            username=payload.username,
            password_hash=password_hash,
            role=payload.role,
            email=payload.email,
            is_active=payload.is_active,
            quota_bytes=payload.quota_bytes,
        )

    async def update_account(self, account_id: str, payload: AccountUpdateInput) -> Account:
        current = await self._repository.get_by_id(account_id)
        if current is None:
            raise AccountNotFoundError(account_id)

        password_hash = None
        if payload.password is not UNSET and payload.password is not None:
            password_hash = hash_password(payload.password)

        email = payload.email if payload.email is not UNSET else current.email
        is_active = payload.is_active if payload.is_active is not UNSET else current.is_active
        role = payload.role if payload.role is not UNSET else current.role
        quota_bytes = payload.quota_bytes if payload.quota_bytes is not UNSET else current.quota_bytes
        if role is not None:
            _ensure_role(role)

        return await self._repository.update_account(
            account_id,
            email=email,
            is_active=is_active,
            role=role,
            password_hash=password_hash,
            quota_bytes=quota_bytes,
        )

    async def set_last_login(self, account_id: str) -> None:
        await self._repository.set_last_login(account_id, datetime.now(timezone.utc))

    # identity/profile lookups

    async def get_role(self, user_id: str) -> str:
        account = await self._repository.get_by_id(user_id)
        if account is None or not account.is_active:
            return "guest"
        return account.role if account.role in ROLES else "guest"

    async def get_quota(self, user_id: str) -> QuotaRecord | None:
        account = await self._repository.get_by_id(user_id)
        if account is None:
            return None
        quota = account.quota_bytes if account.quota_bytes is not None else self._default_quota_bytes
        return QuotaRecord(quota_bytes=quota or 0, used_bytes=account.used_bytes or 0)

    async def adjust_usage(self, user_id: str, delta_bytes: int) -> QuotaRecord:
        account = await self._repository.adjust_usage(user_id, delta_bytes)
        if account is None:
            raise AccountNotFoundError(user_id)
        quota = account.quota_bytes if account.quota_bytes is not None else self._default_quota_bytes
        return QuotaRecord(quota_bytes=quota or 0, used_bytes=account.used_bytes)


def _ensure_role(role: str) -> None:
    if role not in ROLES:
        raise InvalidRoleError(f"Unknown role: {role}")

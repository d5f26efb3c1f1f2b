"""Account related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.core.config import get_settings
from gallery.infrastructure.database.repositories.account_repository import SqlAccountRepository
from gallery.modules.accounts.service import AccountService

from .database import get_db_session


def get_account_repository(db: AsyncSession = Depends(get_db_session)) -> SqlAccountRepository:
    return SqlAccountRepository(db)


def get_account_service(repository: SqlAccountRepository = Depends(get_account_repository)) -> AccountService:
    return AccountService(repository, get_settings().quota.default_quota_bytes)


__all__ = [
    "get_account_repository",
    "get_account_service",
]

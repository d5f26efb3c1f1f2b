"""
初始化管理员账号
Creates the default admin account for the first login.
"""
import asyncio

from sqlalchemy import select

from gallery.core.config import get_settings
from gallery.db.models import Account
from gallery.infrastructure.database import dispose_engine, get_session_factory, init_db
from gallery.modules.accounts import AccountCreateInput
from gallery.modules.accounts.service import AccountService


async def create_default_admin() -> None:
    await init_db()
    settings = get_settings()

    factory = get_session_factory()
    async with factory() as db:
        result = await db.execute(select(Account).where(Account.role == "admin"))
        if result.scalars().first() is not None:
            print("Admin account already exists, nothing to do")
            return

        service = AccountService.with_session(db, settings.quota.default_quota_bytes)
        await service.create_account(
            AccountCreateInput(
                username="admin",
                password="admin123",
                role="admin",
                email="admin@example.com",
                is_active=True,
            )
        )
        await db.commit()

    print("=" * 50)
    print("Default admin account created")
    print("username: admin")
    print("password: admin123")
    print("Change the password after the first login!")
    print("=" * 50)


async def main() -> None:
    try:
        await create_default_admin()
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())

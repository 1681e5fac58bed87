"""
Seed script to create the first admin user.

Run once (e.g. after schema_check) with env set:
  ADMIN_USERNAME=admin
  ADMIN_PASSWORD=YourSecurePassword

An existing user with that username is promoted to admin and gets the new password.
"""
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.models import User
from permit_office.auth.security import hash_password
from permit_office.auth.services import get_user_by_username
from permit_office.core.config import settings
from permit_office.core.enums import UserRole
from permit_office.db.session import AsyncSessionLocal

DEFAULT_ADMIN_EMAIL = "admin@parkspass.org"


async def seed_admin(db: AsyncSession) -> None:
    username = settings.admin_username
    password = settings.admin_password
    if not username or not password:
        print("ADMIN_USERNAME / ADMIN_PASSWORD not set; skipping admin user.")
        return

    user = await get_user_by_username(db, username)
    if not user:
        db.add(
            User(
                username=username,
                password_hash=hash_password(password),
                name=settings.admin_name,
                email=DEFAULT_ADMIN_EMAIL,
                role=UserRole.ADMIN.value,
            )
        )
        print("Created admin user:", username)
    else:
        user.role = UserRole.ADMIN.value
        user.password_hash = hash_password(password)
        print("Updated existing user to admin:", username)

    await db.commit()
    print("Admin seed done.")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())

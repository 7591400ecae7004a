"""Seed the database with the administrator account.

Usage:
    ADMIN_PASSWORD=... python -m vidvault.seed
"""

import asyncio
from typing import Optional

from vidvault.auth.crypto import hash_password
from vidvault.auth.service import get_user_by_email
from vidvault.config import settings
from vidvault.db import Database, transaction
from vidvault.logging_config import logger
from vidvault.models import Role, User, UserRole


async def seed_admin(database: Database, email: str, password: str) -> Optional[int]:
    """Create the ADMIN user unless it already exists. Returns the new user id."""
    async with database.session() as db:
        if await get_user_by_email(db, email) is not None:
            logger.info("Admin user already present", email=email)
            return None

        async with transaction(db):
            admin = User(
                email=email,
                first_name=settings.admin_first_name,
                last_name=settings.admin_last_name,
                password=hash_password(password),
            )
            db.add(admin)
            await db.flush()
            db.add(UserRole(user_id=admin.id, role=Role.ADMIN))

        logger.info("Seeded admin user", user_id=admin.id, email=email)
        return admin.id


async def main():
    if not settings.admin_password:
        raise SystemExit("ADMIN_PASSWORD must be set to seed the admin user")

    database = Database.from_settings()
    try:
        await seed_admin(database, settings.admin_email, settings.admin_password)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())

from sqlalchemy import select

from vidvault.auth import service
from vidvault.models import Role, User
from vidvault.seed import seed_admin


async def test_seed_admin_is_idempotent(database):
    user_id = await seed_admin(database, "admin@example.com", "admin-password")
    assert user_id is not None

    assert await seed_admin(database, "admin@example.com", "other-password") is None

    async with database.session() as db:
        admins = (await db.execute(select(User).where(User.email == "admin@example.com"))).scalars().all()
        assert len(admins) == 1
        assert admins[0].role_names == [Role.ADMIN.value]

        result = await service.login(db, "admin@example.com", "admin-password")
    assert result["data"]["roles"] == ["ADMIN"]

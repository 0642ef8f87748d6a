from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.pending_user import PendingUser
from app.features.auth.models.user import User


class IdentityRepository:
    """Users and pending signups. Methods flush; callers own the commit."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username.lower()))
        return result.scalar_one_or_none()

    async def create_user(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        return user

    async def get_pending_user(self, email: str) -> Optional[PendingUser]:
        result = await self.db.execute(select(PendingUser).where(PendingUser.email == email))
        return result.scalar_one_or_none()

    async def replace_pending_user(self, email: str) -> PendingUser:
        """Start a fresh pending signup, superseding any earlier one."""
        await self.db.execute(delete(PendingUser).where(PendingUser.email == email))
        pending = PendingUser(email=email, is_verified=False)
        self.db.add(pending)
        await self.db.flush()
        return pending

    async def mark_pending_verified(self, pending: PendingUser) -> None:
        pending.is_verified = True
        await self.db.flush()

    async def update_pending_profile(
        self, pending: PendingUser, first_name: str, last_name: str
    ) -> None:
        pending.first_name = first_name
        pending.last_name = last_name
        await self.db.flush()

    async def delete_pending_user(self, email: str) -> int:
        result = await self.db.execute(delete(PendingUser).where(PendingUser.email == email))
        return result.rowcount or 0

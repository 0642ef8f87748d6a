from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.explorers.models.explorer import Explorer, ExplorerStatus
from app.features.notifications.models.notifications import NotificationType
from app.features.notifications.services.notifications import NotificationService
from app.features.posts.services.post_service import actor_name
from app.platform.exceptions import ConflictError, NotFoundError, ValidationError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class ExplorerService:
    """Follow requests between users.

    A request starts pending; the followed user accepts it or rejects it
    (stored as blocked, which also prevents a new request from the same user).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def follow(self, follower: User, following_id: str) -> Explorer:
        if follower.id == following_id:
            raise ValidationError("Cannot follow yourself")

        target = await self.db.get(User, following_id)
        if target is None:
            raise NotFoundError("User not found")

        existing = await self.get_connection(follower.id, following_id)
        if existing is not None:
            raise ConflictError("Connection already exists")

        explorer = Explorer(
            follower_id=follower.id,
            following_id=following_id,
            status=ExplorerStatus.PENDING,
        )
        self.db.add(explorer)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Connection already exists")

        await NotificationService(self.db).notify(
            user_id=following_id,
            notification_type=NotificationType.EXPLORER_REQUEST,
            title="New Explorer Request",
            message=f"{actor_name(follower)} wants to be your explorer",
            data={"explorerId": explorer.id, "fromUserId": follower.id},
        )
        await self.db.commit()
        await self.db.refresh(explorer)
        return explorer

    async def get_connection(self, follower_id: str, following_id: str):
        result = await self.db.execute(
            select(Explorer).where(
                Explorer.follower_id == follower_id, Explorer.following_id == following_id
            )
        )
        return result.scalar_one_or_none()

    async def respond(self, explorer_id: str, user: User, accept: bool) -> Explorer:
        """Accept or reject a pending request addressed to `user`."""
        result = await self.db.execute(
            select(Explorer).where(
                Explorer.id == explorer_id,
                Explorer.following_id == user.id,
                Explorer.status == ExplorerStatus.PENDING,
            )
        )
        explorer = result.scalar_one_or_none()
        if explorer is None:
            raise NotFoundError("Explorer request not found")

        explorer.status = ExplorerStatus.ACCEPTED if accept else ExplorerStatus.BLOCKED
        await self.db.commit()
        await self.db.refresh(explorer)
        logger.info(f"Explorer request {explorer_id} {explorer.status.value} by {user.id}")
        return explorer

    async def get_explorers(self, user: User) -> list[User]:
        """Users who explore `user` (accepted followers)."""
        result = await self.db.execute(
            select(User)
            .join(Explorer, Explorer.follower_id == User.id)
            .where(Explorer.following_id == user.id, Explorer.status == ExplorerStatus.ACCEPTED)
            .order_by(Explorer.created_at.desc(), Explorer.id.desc())
        )
        return list(result.scalars().all())

    async def get_following(self, user: User) -> list[User]:
        result = await self.db.execute(
            select(User)
            .join(Explorer, Explorer.following_id == User.id)
            .where(Explorer.follower_id == user.id, Explorer.status == ExplorerStatus.ACCEPTED)
            .order_by(Explorer.created_at.desc(), Explorer.id.desc())
        )
        return list(result.scalars().all())

    async def get_pending_requests(self, user: User) -> list[Explorer]:
        result = await self.db.execute(
            select(Explorer)
            .where(Explorer.following_id == user.id, Explorer.status == ExplorerStatus.PENDING)
            .order_by(Explorer.created_at.desc(), Explorer.id.desc())
        )
        return list(result.scalars().all())

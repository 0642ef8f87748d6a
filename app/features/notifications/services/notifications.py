from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.notifications.models.notifications import Notification, NotificationType
from app.platform.exceptions import NotFoundError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """
        Queue a notification in the caller's transaction. The caller commits.
        """
        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
            is_read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        logger.info(f"Created notification for user {user_id}: {title}")
        return notification

    async def get_user_notifications(
        self, user_id: str, skip: int = 0, limit: int = 50, unread_only: bool = False
    ) -> tuple[list[Notification], int, int]:
        conditions = [Notification.user_id == user_id]
        if unread_only:
            conditions.append(Notification.is_read.is_(False))

        stmt = (
            select(Notification)
            .where(and_(*conditions))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
            .limit(limit)
        )
        notifications = list((await self.db.execute(stmt)).scalars().all())

        total = await self.db.scalar(
            select(func.count()).select_from(Notification).where(and_(*conditions))
        )
        unread_count = await self.get_unread_count(user_id)
        return notifications, total or 0, unread_count

    async def get_unread_count(self, user_id: str) -> int:
        count = await self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return count or 0

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id, Notification.user_id == user_id
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification not found")

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = _now()
            await self.db.commit()
        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=_now())
        )
        await self.db.commit()
        return result.rowcount or 0


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

from datetime import timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.features.auth.models.user import User
from app.features.auth.utils.verify import utcnow
from app.features.notifications.models.notifications import NotificationType
from app.features.notifications.services.notifications import NotificationService
from app.features.posts.services.post_service import actor_name
from app.features.stories.models.story import Story, StoryView
from app.features.stories.schemas.story import StoryCreate
from app.platform.config import settings
from app.platform.exceptions import NotFoundError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class StoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_story(self, user: User, data: StoryCreate) -> Story:
        story = Story(
            user_id=user.id,
            media_url=data.media_url,
            media_type=data.media_type,
            location=data.location,
            latitude=data.latitude,
            longitude=data.longitude,
            view_count=0,
            expires_at=utcnow() + timedelta(hours=settings.STORY_TTL_HOURS),
        )
        self.db.add(story)
        await self.db.commit()
        await self.db.refresh(story)
        return story

    async def get_active_stories(self) -> list[Story]:
        # expired rows may linger until the next sweep
        result = await self.db.execute(
            select(Story)
            .where(Story.expires_at > utcnow())
            .order_by(Story.created_at.desc(), Story.id.desc())
        )
        return list(result.scalars().all())

    async def view_story(self, story_id: str, viewer: User) -> Story:
        """Record one view per viewer. Owners viewing their own story are not counted."""
        result = await self.db.execute(
            select(Story).where(Story.id == story_id, Story.expires_at > utcnow())
        )
        story = result.scalar_one_or_none()
        if story is None:
            raise NotFoundError("Story not found")

        if story.user_id == viewer.id:
            return story

        seen = await self.db.execute(
            select(StoryView.id).where(StoryView.story_id == story_id, StoryView.user_id == viewer.id)
        )
        if seen.first() is not None:
            return story

        try:
            self.db.add(StoryView(story_id=story_id, user_id=viewer.id))
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            return await self.db.get(Story, story_id)

        await self.db.execute(
            update(Story)
            .where(Story.id == story_id)
            .values(view_count=Story.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await NotificationService(self.db).notify(
            user_id=story.user_id,
            notification_type=NotificationType.STORY_VIEW,
            title="New Story View",
            message=f"{actor_name(viewer)} viewed your story",
            data={"storyId": story_id},
        )
        await self.db.commit()
        await self.db.refresh(story)
        return story


def purge_expired_stories(db: Session) -> int:
    """Delete expired stories and their views. Used by the periodic sweep."""
    now = utcnow()
    expired = select(Story.id).where(Story.expires_at <= now)
    db.execute(delete(StoryView).where(StoryView.story_id.in_(expired)))
    result = db.execute(delete(Story).where(Story.expires_at <= now))
    db.commit()
    return result.rowcount or 0

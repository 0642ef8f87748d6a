import math
from typing import Optional

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.explorers.models.explorer import Explorer, ExplorerStatus
from app.features.notifications.models.notifications import NotificationType
from app.features.notifications.services.notifications import NotificationService
from app.features.posts.models.post import Comment, Like, Post, PostVisibility, Save
from app.features.posts.schemas.post import CommentCreate, PostCreate
from app.platform.config import settings
from app.platform.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.platform.logger import get_logger

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def visible_to(viewer_id: str):
    """Posts a viewer may see: their own, public ones, and explorer-only
    posts of users who accepted the viewer as an explorer."""
    followed = select(Explorer.following_id).where(
        Explorer.follower_id == viewer_id,
        Explorer.status == ExplorerStatus.ACCEPTED,
    )
    return or_(
        Post.user_id == viewer_id,
        Post.visibility == PostVisibility.EVERYONE,
        and_(Post.visibility == PostVisibility.EXPLORERS, Post.user_id.in_(followed)),
    )


def actor_name(user: User) -> str:
    return user.display_name or user.username or "Someone"


class PostService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # ── posts ───────────────────────────────────

    async def create_post(self, user: User, data: PostCreate) -> Post:
        post = Post(
            user_id=user.id,
            title=data.title,
            description=data.description,
            location=data.location,
            latitude=data.latitude,
            longitude=data.longitude,
            categories=data.categories,
            image_urls=data.image_urls,
            music_url=data.music_url,
            visibility=data.visibility,
            like_count=0,
            comment_count=0,
        )
        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)
        logger.info(f"Post created - post: {post.id}, user: {user.id}")
        return post

    async def get_post(self, post_id: str, viewer: User) -> Post:
        result = await self.db.execute(
            select(Post).where(Post.id == post_id, visible_to(viewer.id))
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def get_user_posts(self, user_id: str, viewer: User) -> list[Post]:
        result = await self.db.execute(
            select(Post)
            .where(Post.user_id == user_id, visible_to(viewer.id))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(result.scalars().all())

    async def get_feed(self, viewer: User, limit: int = settings.FEED_DEFAULT_LIMIT) -> list[Post]:
        result = await self.db.execute(
            select(Post)
            .where(visible_to(viewer.id))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_nearby(
        self,
        viewer: User,
        latitude: float,
        longitude: float,
        radius_km: float = settings.NEARBY_DEFAULT_RADIUS_KM,
    ) -> list[tuple[Post, float]]:
        result = await self.db.execute(
            select(Post).where(
                Post.latitude.is_not(None),
                Post.longitude.is_not(None),
                visible_to(viewer.id),
            )
        )
        nearby = []
        for post in result.scalars().all():
            distance = haversine_km(latitude, longitude, post.latitude, post.longitude)
            if distance <= radius_km:
                nearby.append((post, distance))
        nearby.sort(key=lambda item: item[1])
        return nearby

    async def delete_post(self, post_id: str, user: User) -> None:
        post = await self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.user_id != user.id:
            raise PermissionDeniedError("Not authorized to delete this post")

        await self.db.execute(delete(Like).where(Like.post_id == post_id))
        await self.db.execute(delete(Save).where(Save.post_id == post_id))
        await self.db.execute(delete(Comment).where(Comment.post_id == post_id))
        await self.db.delete(post)
        await self.db.commit()
        logger.info(f"Post deleted - post: {post_id}, user: {user.id}")

    # ── likes ───────────────────────────────────

    async def like_post(self, post_id: str, user: User) -> int:
        post = await self.get_post(post_id, user)

        existing = await self.db.execute(
            select(Like.id).where(Like.user_id == user.id, Like.post_id == post_id)
        )
        if existing.first() is not None:
            raise ConflictError("Post already liked")

        try:
            like = Like(user_id=user.id, post_id=post_id)
            self.db.add(like)
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Post already liked")

        await self._bump(post_id, Post.like_count, 1)
        if post.user_id != user.id:
            await self.notifications.notify(
                user_id=post.user_id,
                notification_type=NotificationType.LIKE,
                title="New Like",
                message=f"{actor_name(user)} liked your post",
                data={"postId": post_id, "likeId": like.id},
            )
        await self.db.commit()
        return await self._count(post_id, Post.like_count)

    async def unlike_post(self, post_id: str, user: User) -> int:
        result = await self.db.execute(
            delete(Like).where(Like.user_id == user.id, Like.post_id == post_id)
        )
        if not result.rowcount:
            raise NotFoundError("Like not found")
        await self._bump(post_id, Post.like_count, -1)
        await self.db.commit()
        return await self._count(post_id, Post.like_count)

    # ── comments ────────────────────────────────

    async def get_comments(self, post_id: str, viewer: User) -> list[Comment]:
        await self.get_post(post_id, viewer)
        result = await self.db.execute(
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return list(result.scalars().all())

    async def add_comment(self, post_id: str, user: User, data: CommentCreate) -> Comment:
        post = await self.get_post(post_id, user)

        if data.parent_id is not None:
            parent = await self.db.get(Comment, data.parent_id)
            if parent is None or parent.post_id != post_id:
                raise ValidationError("Parent comment does not belong to this post")

        comment = Comment(
            post_id=post_id,
            user_id=user.id,
            content=data.content.strip(),
            parent_id=data.parent_id,
        )
        self.db.add(comment)
        await self.db.flush()

        await self._bump(post_id, Post.comment_count, 1)
        if post.user_id != user.id:
            await self.notifications.notify(
                user_id=post.user_id,
                notification_type=NotificationType.COMMENT,
                title="New Comment",
                message=f"{actor_name(user)} commented on your post",
                data={"postId": post_id, "commentId": comment.id},
            )
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    # ── saves ───────────────────────────────────

    async def save_post(self, post_id: str, user: User) -> Save:
        await self.get_post(post_id, user)

        existing = await self.db.execute(
            select(Save.id).where(Save.user_id == user.id, Save.post_id == post_id)
        )
        if existing.first() is not None:
            raise ConflictError("Post already saved")

        save = Save(user_id=user.id, post_id=post_id)
        self.db.add(save)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Post already saved")
        return save

    async def unsave_post(self, post_id: str, user: User) -> None:
        result = await self.db.execute(
            delete(Save).where(Save.user_id == user.id, Save.post_id == post_id)
        )
        if not result.rowcount:
            raise NotFoundError("Save not found")
        await self.db.commit()

    async def get_saved_posts(self, user: User) -> list[Post]:
        result = await self.db.execute(
            select(Post)
            .join(Save, Save.post_id == Post.id)
            .where(Save.user_id == user.id, visible_to(user.id))
            .order_by(Save.created_at.desc(), Save.id.desc())
        )
        return list(result.scalars().all())

    # ── helpers ─────────────────────────────────

    async def _bump(self, post_id: str, column, delta: int) -> None:
        await self.db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values({column: column + delta})
            .execution_options(synchronize_session=False)
        )

    async def _count(self, post_id: str, column) -> Optional[int]:
        return await self.db.scalar(select(column).where(Post.id == post_id))

import enum

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Integer, String, UniqueConstraint

from app.platform.db.base import BaseModel


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class Story(BaseModel):
    __tablename__ = "stories"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_url = Column(String(500), nullable=False)
    media_type = Column(Enum(MediaType), nullable=False)
    location = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Story(id={self.id}, user_id={self.user_id}, expires_at={self.expires_at})>"


class StoryView(BaseModel):
    __tablename__ = "story_views"
    __table_args__ = (UniqueConstraint("story_id", "user_id", name="uq_story_views_story_user"),)

    story_id = Column(String, ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

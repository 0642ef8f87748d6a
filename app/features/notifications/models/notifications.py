import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, String, Text

from app.platform.db.base import BaseModel


class NotificationType(str, enum.Enum):
    """Types of notifications"""

    LIKE = "like"
    COMMENT = "comment"
    EXPLORER_REQUEST = "explorer_request"
    STORY_VIEW = "story_view"


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    notification_type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # ids of the related post/comment/story/explorer request
    data = Column(JSON, nullable=True)

    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.notification_type}, is_read={self.is_read})>"

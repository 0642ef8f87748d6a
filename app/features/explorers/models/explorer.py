import enum

from sqlalchemy import Column, Enum, ForeignKey, String, UniqueConstraint

from app.platform.db.base import BaseModel


class ExplorerStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class Explorer(BaseModel):
    """A follow relationship. The follower explores the following user's posts."""

    __tablename__ = "explorers"
    __table_args__ = (UniqueConstraint("follower_id", "following_id", name="uq_explorers_pair"),)

    follower_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(ExplorerStatus), nullable=False, default=ExplorerStatus.PENDING)

    def __repr__(self):
        return f"<Explorer(follower={self.follower_id}, following={self.following_id}, status={self.status})>"

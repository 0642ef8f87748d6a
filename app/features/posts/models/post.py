import enum

from sqlalchemy import JSON, Column, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint

from app.platform.db.base import BaseModel


class PostVisibility(str, enum.Enum):
    EVERYONE = "everyone"
    EXPLORERS = "explorers"
    PRIVATE = "private"


class Post(BaseModel):
    __tablename__ = "posts"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    image_urls = Column(JSON, nullable=False)
    music_url = Column(String(500), nullable=True)
    visibility = Column(Enum(PostVisibility), nullable=False, default=PostVisibility.EVERYONE)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Post(id={self.id}, user_id={self.user_id}, title={self.title})>"


class Like(BaseModel):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),)

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(String, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)


class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(String, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    parent_id = Column(String, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)


class Save(BaseModel):
    __tablename__ = "saves"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_saves_user_post"),)

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(String, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)

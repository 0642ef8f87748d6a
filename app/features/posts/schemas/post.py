from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.features.posts.models.post import PostVisibility
from app.platform.schemas import CamelModel


class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    categories: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(..., min_length=1, max_length=10)
    music_url: Optional[str] = Field(None, max_length=500)
    visibility: PostVisibility = PostVisibility.EVERYONE

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be blank")
        return v


class PostResponse(CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    categories: list[str] = []
    image_urls: list[str]
    music_url: Optional[str] = None
    visibility: PostVisibility
    like_count: int
    comment_count: int
    created_at: datetime


class NearbyPostResponse(PostResponse):
    distance_km: float


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[str] = None


class CommentResponse(CamelModel):
    id: str
    post_id: str
    user_id: str
    content: str
    parent_id: Optional[str] = None
    created_at: datetime

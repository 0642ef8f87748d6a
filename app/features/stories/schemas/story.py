from datetime import datetime
from typing import Optional

from pydantic import Field

from app.features.stories.models.story import MediaType
from app.platform.schemas import CamelModel


class StoryCreate(CamelModel):
    media_url: str = Field(..., min_length=1, max_length=500)
    media_type: MediaType
    location: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StoryResponse(CamelModel):
    id: str
    user_id: str
    media_url: str
    media_type: MediaType
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    view_count: int
    expires_at: datetime
    created_at: datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.stories.schemas.story import StoryCreate, StoryResponse
from app.features.stories.services.story_service import StoryService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/stories", tags=["Stories"])


@router.get("", response_model=dict, summary="Active stories")
async def get_stories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stories = await StoryService(db).get_active_stories()
    return api_response(
        message="Stories retrieved successfully",
        data=[StoryResponse.model_validate(s) for s in stories],
    )


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Publish a 24-hour story")
async def create_story(
    request: StoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    story = await StoryService(db).create_story(current_user, request)
    return api_response(
        message="Story created successfully",
        status_code=status.HTTP_201_CREATED,
        data=StoryResponse.model_validate(story),
    )


@router.post("/{story_id}/view", response_model=dict)
async def view_story(
    story_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    story = await StoryService(db).view_story(story_id, current_user)
    return api_response(
        message="Story view recorded",
        data={"storyId": story.id, "viewCount": story.view_count},
    )

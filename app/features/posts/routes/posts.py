from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.posts.schemas.post import (
    CommentCreate,
    CommentResponse,
    NearbyPostResponse,
    PostCreate,
    PostResponse,
)
from app.features.posts.services.post_service import PostService
from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.exceptions import ValidationError
from app.platform.response import api_response

router = APIRouter(prefix="/posts", tags=["Posts"])
saves_router = APIRouter(prefix="/saves", tags=["Posts"])


@router.get("/feed", response_model=dict, summary="Home feed")
async def get_feed(
    limit: int = Query(settings.FEED_DEFAULT_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    posts = await PostService(db).get_feed(current_user, limit=limit)
    return api_response(
        message="Feed retrieved successfully",
        data=[PostResponse.model_validate(p) for p in posts],
    )


@router.get("/nearby", response_model=dict, summary="Posts around a coordinate")
async def get_nearby_posts(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(settings.NEARBY_DEFAULT_RADIUS_KM, gt=0, le=20000),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Visible posts within `radius` km of (lat, lng), nearest first."""
    if lat is None or lng is None:
        raise ValidationError("Latitude and longitude are required")

    nearby = await PostService(db).get_nearby(current_user, lat, lng, radius)
    return api_response(
        message="Nearby posts retrieved successfully",
        data=[
            NearbyPostResponse(
                **PostResponse.model_validate(post).model_dump(),
                distance_km=round(distance, 3),
            )
            for post, distance in nearby
        ],
    )


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Create a post")
async def create_post(
    request: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService(db).create_post(current_user, request)
    return api_response(
        message="Post created successfully",
        status_code=status.HTTP_201_CREATED,
        data=PostResponse.model_validate(post),
    )


@router.get("/{post_id}", response_model=dict)
async def get_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService(db).get_post(post_id, current_user)
    return api_response(message="Post retrieved successfully", data=PostResponse.model_validate(post))


@router.delete("/{post_id}", response_model=dict)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PostService(db).delete_post(post_id, current_user)
    return api_response(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=dict, status_code=status.HTTP_201_CREATED)
async def like_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    like_count = await PostService(db).like_post(post_id, current_user)
    return api_response(
        message="Post liked",
        status_code=status.HTTP_201_CREATED,
        data={"postId": post_id, "likeCount": like_count},
    )


@router.delete("/{post_id}/like", response_model=dict)
async def unlike_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    like_count = await PostService(db).unlike_post(post_id, current_user)
    return api_response(
        message="Like removed successfully",
        data={"postId": post_id, "likeCount": like_count},
    )


@router.get("/{post_id}/comments", response_model=dict)
async def get_comments(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comments = await PostService(db).get_comments(post_id, current_user)
    return api_response(
        message="Comments retrieved successfully",
        data=[CommentResponse.model_validate(c) for c in comments],
    )


@router.post("/{post_id}/comments", response_model=dict, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    request: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await PostService(db).add_comment(post_id, current_user, request)
    return api_response(
        message="Comment added successfully",
        status_code=status.HTTP_201_CREATED,
        data=CommentResponse.model_validate(comment),
    )


@router.post("/{post_id}/save", response_model=dict, status_code=status.HTTP_201_CREATED)
async def save_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PostService(db).save_post(post_id, current_user)
    return api_response(
        message="Post saved",
        status_code=status.HTTP_201_CREATED,
        data={"postId": post_id},
    )


@router.delete("/{post_id}/save", response_model=dict)
async def unsave_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PostService(db).unsave_post(post_id, current_user)
    return api_response(message="Save removed successfully")


@saves_router.get("", response_model=dict, summary="Saved posts")
async def get_saved_posts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    posts = await PostService(db).get_saved_posts(current_user)
    return api_response(
        message="Saved posts retrieved successfully",
        data=[PostResponse.model_validate(p) for p in posts],
    )

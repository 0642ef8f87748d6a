from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.repositories.identity_repo import IdentityRepository
from app.features.auth.routes.auth import get_current_user
from app.features.auth.schemas.signup import PublicUserResponse
from app.features.posts.schemas.post import PostResponse
from app.features.posts.services.post_service import PostService
from app.platform.db.session import get_db
from app.platform.exceptions import NotFoundError, ValidationError
from app.platform.response import api_response

router = APIRouter(prefix="/users", tags=["Users"])

SEARCH_LIMIT = 20


@router.get(
    "/search",
    response_model=dict,
    summary="Search users",
    description="Find users whose username starts with the query",
)
async def search_users(
    q: str = Query(..., min_length=1, max_length=30),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefix = q.strip().lower()
    if not prefix:
        raise ValidationError("Search query cannot be blank")
    prefix = prefix.replace("%", r"\%").replace("_", r"\_")
    result = await db.execute(
        select(User)
        .where(User.username.ilike(f"{prefix}%", escape="\\"))
        .order_by(User.username.asc())
        .limit(SEARCH_LIMIT)
    )
    return api_response(
        message="Users retrieved successfully",
        data=[PublicUserResponse.model_validate(u) for u in result.scalars().all()],
    )


@router.get("/{user_id}", response_model=dict, summary="Get a user's public profile")
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await IdentityRepository(db).get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return api_response(
        message="User retrieved successfully",
        data=PublicUserResponse.model_validate(user),
    )


@router.get("/{user_id}/posts", response_model=dict, summary="Posts by a user")
async def get_user_posts(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Only the posts the caller is allowed to see are returned."""
    if await IdentityRepository(db).get_user(user_id) is None:
        raise NotFoundError("User not found")

    posts = await PostService(db).get_user_posts(user_id, current_user)
    return api_response(
        message="Posts retrieved successfully",
        data=[PostResponse.model_validate(p) for p in posts],
    )

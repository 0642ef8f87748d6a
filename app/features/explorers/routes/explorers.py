from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.auth.schemas.signup import PublicUserResponse
from app.features.explorers.schemas.explorer import ExplorerResponse
from app.features.explorers.services.explorer_service import ExplorerService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/explorers", tags=["Explorers"])


@router.get("", response_model=dict, summary="My explorers (accepted followers)")
async def get_explorers(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users = await ExplorerService(db).get_explorers(current_user)
    return api_response(
        message="Explorers retrieved successfully",
        data=[PublicUserResponse.model_validate(u) for u in users],
    )


@router.get("/following", response_model=dict)
async def get_following(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users = await ExplorerService(db).get_following(current_user)
    return api_response(
        message="Following retrieved successfully",
        data=[PublicUserResponse.model_validate(u) for u in users],
    )


@router.get("/requests", response_model=dict)
async def get_explorer_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await ExplorerService(db).get_pending_requests(current_user)
    return api_response(
        message="Explorer requests retrieved successfully",
        data=[ExplorerResponse.model_validate(r) for r in requests],
    )


@router.post("/{user_id}/follow", response_model=dict, status_code=status.HTTP_201_CREATED)
async def follow_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    explorer = await ExplorerService(db).follow(current_user, user_id)
    return api_response(
        message="Explorer request sent",
        status_code=status.HTTP_201_CREATED,
        data=ExplorerResponse.model_validate(explorer),
    )


@router.post("/{explorer_id}/accept", response_model=dict)
async def accept_explorer_request(
    explorer_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    explorer = await ExplorerService(db).respond(explorer_id, current_user, accept=True)
    return api_response(
        message="Explorer request accepted",
        data=ExplorerResponse.model_validate(explorer),
    )


@router.post("/{explorer_id}/reject", response_model=dict)
async def reject_explorer_request(
    explorer_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    explorer = await ExplorerService(db).respond(explorer_id, current_user, accept=False)
    return api_response(
        message="Explorer request rejected",
        data=ExplorerResponse.model_validate(explorer),
    )

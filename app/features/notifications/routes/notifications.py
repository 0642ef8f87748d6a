from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.notifications.schemas.notifications import (
    NotificationListResponse,
    NotificationResponse,
)
from app.features.notifications.services.notifications import NotificationService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=dict)
async def get_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get user notifications with pagination."""
    service = NotificationService(db)
    notifications, total, unread_count = await service.get_user_notifications(
        user_id=str(current_user.id),
        skip=skip,
        limit=limit,
        unread_only=unread_only,
    )

    return api_response(
        status_code=status.HTTP_200_OK,
        message="Notifications retrieved successfully",
        data=NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            total=total,
            unread_count=unread_count,
        ),
    )


@router.get("/unread-count", response_model=dict)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get count of unread notifications."""
    unread_count = await NotificationService(db).get_unread_count(str(current_user.id))
    return api_response(
        message="Unread count retrieved successfully",
        data={"unreadCount": unread_count},
    )


@router.post("/read-all", response_model=dict)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_as_read(str(current_user.id))
    return api_response(
        message="All notifications marked as read",
        data={"updated": updated},
    )


@router.post("/{notification_id}/read", response_model=dict)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_as_read(notification_id, str(current_user.id))
    return api_response(
        message="Notification marked as read",
        data=NotificationResponse.model_validate(notification),
    )

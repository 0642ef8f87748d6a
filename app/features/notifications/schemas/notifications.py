from datetime import datetime
from typing import Any, Optional

from app.features.notifications.models.notifications import NotificationType
from app.platform.schemas import CamelModel


class NotificationResponse(CamelModel):
    id: str
    notification_type: NotificationType
    title: str
    message: str
    data: Optional[dict[str, Any]] = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
    total: int
    unread_count: int

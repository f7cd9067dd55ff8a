from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Notification, User
from ..services.notification_service import list_for_user, mark_read

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    priority: str
    targetUsers: str
    category: Optional[str] = None
    icon: Optional[str] = None
    actionUrl: Optional[str] = None
    actionText: Optional[str] = None
    isRead: bool
    createdAt: Optional[datetime] = None


def to_response(notification: Notification, user: User) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        priority=notification.priority,
        targetUsers=notification.target_users,
        category=notification.category,
        icon=notification.icon,
        actionUrl=notification.action_url,
        actionText=notification.action_text,
        isRead=user.id in (notification.read_by or []),
        createdAt=notification.created_at,
    )


@router.get("", response_model=list[NotificationResponse])
async def get_notifications(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the notifications visible to the current user, newest first"""
    return [to_response(n, current_user) for n in list_for_user(db, current_user, limit)]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def read_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a notification as read for the current user"""
    return to_response(mark_read(db, notification_id, current_user), current_user)

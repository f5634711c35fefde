# =============================================================================
# app/routers/notifications.py - Notification Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from app.dependencies import NotificationServiceDep
from app.exceptions import NotificationNotFoundError
from core.models.notification import Notification, UnreadCount

router = APIRouter()


@router.get("", response_model=list[Notification])
def list_notifications(
    service: NotificationServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """The caller's notifications, newest first."""
    return service.get_user_notifications(user.id)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    service: NotificationServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Number of unread notifications (0 when unavailable)."""
    return UnreadCount(count=service.get_unread_count(user.id))


@router.post("/{notification_id}/read")
def mark_notification_read(
    notification_id: Annotated[UUID, Path(description="Notification UUID")],
    service: NotificationServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Mark one of the caller's notifications as read.

    Raises:
        404: If the caller has no such notification
    """
    if not service.mark_as_read(notification_id, user_id=user.id):
        raise NotificationNotFoundError(str(notification_id))
    return {"id": str(notification_id), "isRead": True}

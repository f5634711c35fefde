# =============================================================================
# core/models/notification.py - Notification Schemas
# =============================================================================
# Notifications are created by booking/lesson events and only ever
# mutated by "mark as read". Older schema versions lack the `title`
# column and store the related entity in `related_entity_id`.
# =============================================================================

from enum import Enum

from pydantic import Field

from .base import CamelModel


class NotificationType(str, Enum):
    """Kinds of notification shown in the inbox."""
    LESSON_REMINDER = "lesson_reminder"
    BOOKING_CONFIRMATION = "booking_confirmation"
    MESSAGE = "message"
    SYSTEM = "system"


# Type names written by older versions of the booking flow
LEGACY_NOTIFICATION_TYPES = {
    "new_booking": NotificationType.BOOKING_CONFIRMATION,
}


class Notification(CamelModel):
    """A single inbox notification."""
    id: str
    user_id: str
    title: str = Field(default="Notification")
    message: str = ""
    type: NotificationType = NotificationType.SYSTEM
    is_read: bool = False
    created_at: str | None = None
    related_id: str | None = None


class UnreadCount(CamelModel):
    """Unread notification counter."""
    count: int = Field(default=0, ge=0)

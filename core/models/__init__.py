# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains the stable DTOs the API returns, whatever schema
# version the rows came from:
# - lesson.py: Lesson, LessonStats, status/role/action enums
# - notification.py: Notification, UnreadCount
# - payment.py: Payment, EarningsSummary
# - booking.py: Booking creation input and booking requests
# - learning_module.py: LearningModule
# - teacher.py: Teacher profile, rating and availability
# - email.py: Booking email payload
#
# All models serialize with camelCase aliases (see base.py).
# =============================================================================

from .base import CamelModel

# -----------------------------------------------------------------------------
# Lessons
# -----------------------------------------------------------------------------
from .lesson import (
    Lesson,
    LessonAction,
    LessonStats,
    LessonStatus,
    UserRole,
)

# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------
from .notification import (
    LEGACY_NOTIFICATION_TYPES,
    Notification,
    NotificationType,
    UnreadCount,
)

# -----------------------------------------------------------------------------
# Payments
# -----------------------------------------------------------------------------
from .payment import (
    EarningsSummary,
    Payment,
    PaymentStatus,
)

# -----------------------------------------------------------------------------
# Bookings & Modules
# -----------------------------------------------------------------------------
from .booking import (
    BookingCreate,
    BookingRequest,
    BookingRequestStatus,
    BookingRequestUpdate,
)
from .learning_module import LearningModule

# -----------------------------------------------------------------------------
# Teachers & Email
# -----------------------------------------------------------------------------
from .teacher import (
    Teacher,
    TeacherAvailability,
    TeacherProfileUpdate,
    TeacherRating,
)
from .email import BookingEmail

__all__ = [
    "CamelModel",
    # Lessons
    "Lesson",
    "LessonAction",
    "LessonStats",
    "LessonStatus",
    "UserRole",
    # Notifications
    "LEGACY_NOTIFICATION_TYPES",
    "Notification",
    "NotificationType",
    "UnreadCount",
    # Payments
    "EarningsSummary",
    "Payment",
    "PaymentStatus",
    # Bookings
    "BookingCreate",
    "BookingRequest",
    "BookingRequestStatus",
    "BookingRequestUpdate",
    "LearningModule",
    # Teachers
    "Teacher",
    "TeacherAvailability",
    "TeacherProfileUpdate",
    "TeacherRating",
    # Email
    "BookingEmail",
]

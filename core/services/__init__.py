# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================
# Every service takes the Supabase client in its constructor; nothing here
# reaches for a global client.
# =============================================================================

from .lesson_service import LessonService
from .notification_service import NotificationService
from .payment_service import PaymentService
from .booking_service import BookingService
from .booking_request_service import BookingRequestService
from .teacher_service import TeacherService
from .upload_service import UploadService
from .email_service import EmailResult, EmailService

__all__ = [
    "LessonService",
    "NotificationService",
    "PaymentService",
    "BookingService",
    "BookingRequestService",
    "TeacherService",
    "UploadService",
    "EmailResult",
    "EmailService",
]

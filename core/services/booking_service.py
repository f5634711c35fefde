# =============================================================================
# core/services/booking_service.py - Bookings & Learning Modules
# =============================================================================
# Write path for new bookings:
# - create_booking_request: student asks, teacher approves later
# - create_booking: immediate booking, status "confirmed", teacher notified
#
# Learning modules are read from `learning_modules`; when that table is
# missing or has nothing for the subject, a generated catalogue is served.
# Progress for catalogue modules is reported as zero completed lessons.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from app.exceptions import DatabaseWriteError
from core.mappers import booking_row_to_lesson_row, join_name, map_booking_request, map_lesson
from core.models.booking import BookingCreate, BookingRequest
from core.models.learning_module import LearningModule
from core.models.lesson import Lesson, LessonStatus
from core.models.notification import NotificationType
from core.services.notification_service import NotificationService
from lib.supabase_client import error_code
from lib.utils import normalize_uuid, to_number

logger = logging.getLogger(__name__)


# =============================================================================
# Generated module catalogue
# =============================================================================

MODULE_CATALOGUE: dict[str, list[dict[str, Any]]] = {
    "math": [
        {"id": "m1", "name": "Algebra Fundamentals", "subject": "Mathematics", "level": "Beginner", "lessons": 10,
         "description": "Master the basics of algebraic expressions and equations"},
        {"id": "m2", "name": "Geometry Essentials", "subject": "Mathematics", "level": "Intermediate", "lessons": 8,
         "description": "Learn about shapes, angles, and spatial relationships"},
        {"id": "m3", "name": "Calculus Introduction", "subject": "Mathematics", "level": "Advanced", "lessons": 12,
         "description": "Begin your journey into differential and integral calculus"},
    ],
    "physics": [
        {"id": "p1", "name": "Mechanics Basics", "subject": "Physics", "level": "Beginner", "lessons": 9,
         "description": "Understand motion, forces, and energy"},
        {"id": "p2", "name": "Electricity & Magnetism", "subject": "Physics", "level": "Intermediate", "lessons": 10,
         "description": "Explore electric charges, fields, and magnetic phenomena"},
    ],
    "english": [
        {"id": "e1", "name": "Grammar Foundations", "subject": "English", "level": "Beginner", "lessons": 8,
         "description": "Master English grammar rules and applications"},
        {"id": "e2", "name": "Essay Writing", "subject": "English", "level": "Intermediate", "lessons": 6,
         "description": "Learn to craft compelling essays with proper structure"},
    ],
}


def generic_modules(subject: str) -> list[dict[str, Any]]:
    """Fallback modules for subjects without a dedicated catalogue."""
    return [
        {"id": "g1", "name": "Fundamentals", "subject": subject, "level": "Beginner", "lessons": 8,
         "description": f"Basic concepts in {subject}"},
        {"id": "g2", "name": "Intermediate Concepts", "subject": subject, "level": "Intermediate", "lessons": 10,
         "description": f"Build on the basics of {subject}"},
        {"id": "g3", "name": "Advanced Topics", "subject": subject, "level": "Advanced", "lessons": 12,
         "description": f"Tackle complex problems in {subject}"},
    ]


def catalogue_modules(subject: str) -> list[LearningModule]:
    """Generated modules for a subject, matched by keyword (case-insensitive)."""
    lowered = subject.lower()
    for keyword, modules in MODULE_CATALOGUE.items():
        if keyword in lowered:
            return [LearningModule(**module) for module in modules]
    return [LearningModule(**module) for module in generic_modules(subject)]


def map_module(row: dict[str, Any]) -> LearningModule:
    return LearningModule(
        id=str(row.get("id")),
        name=row.get("name") or "",
        description=row.get("description") or "",
        subject=row.get("subject") or "",
        level=row.get("level") or "Beginner",
        lessons=int(to_number(row.get("lessons"))),
    )


def with_progress(module: LearningModule, completed: int) -> LearningModule:
    """Copy of `module` with completed lessons and percent progress (0-100)."""
    completed = max(0, min(completed, module.lessons)) if module.lessons else 0
    progress = (completed / module.lessons) * 100 if module.lessons else 0.0
    return module.model_copy(update={"completed_lessons": completed, "progress": progress})


class BookingService:
    """
    Service for creating bookings and reading learning modules.

    Args:
        client: Supabase client handle
        notifications: Used to notify the teacher of new bookings
    """

    def __init__(self, client: Client, notifications: NotificationService | None = None):
        self.client = client
        self.notifications = notifications or NotificationService(client)

    # -------------------------------------------------------------------------
    # Booking creation (write path)
    # -------------------------------------------------------------------------

    def create_booking_request(self, booking: BookingCreate) -> BookingRequest:
        """
        Store a booking request for the teacher to approve or reject.

        Raises:
            DatabaseWriteError: If the insert fails
        """
        data = {
            "teacher_id": booking.teacher_id,
            "student_id": booking.student_id,
            "subject": booking.subject,
            "date": booking.date,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "message": booking.message or "",
        }

        try:
            response = self.client.table("booking_requests").insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create booking request for teacher {booking.teacher_id}: {e}")
            raise DatabaseWriteError("create booking request", str(e), error_code(e))

        row = (response.data or [data])[0]
        logger.info(f"Created booking request {row.get('id')} ({booking.subject}) for teacher {booking.teacher_id}")
        return map_booking_request(row)

    def create_booking(self, booking: BookingCreate) -> Lesson:
        """
        Create a confirmed booking and notify the teacher.

        A failed notification is logged and does not fail the booking.

        Raises:
            DatabaseWriteError: If the insert fails
        """
        data = {
            "teacher_id": booking.teacher_id,
            "student_id": booking.student_id,
            "subject": booking.subject,
            "module_id": booking.module_id,
            "date": booking.date,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "start_time_utc": booking.start_time_utc,
            "end_time_utc": booking.end_time_utc,
            "notes": booking.notes or "",
            "meeting_link": booking.meeting_link or "",
            "status": LessonStatus.CONFIRMED.value,
        }
        data = {key: value for key, value in data.items() if value is not None}

        try:
            response = self.client.table("bookings").insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create booking for teacher {booking.teacher_id}: {e}")
            raise DatabaseWriteError("create booking", str(e), error_code(e))

        row = (response.data or [data])[0]
        logger.info(f"Created booking {row.get('id')} ({booking.subject}) for teacher {booking.teacher_id}")

        self._notify_teacher(booking, row.get("id"))
        return map_lesson(booking_row_to_lesson_row(row))

    def _notify_teacher(self, booking: BookingCreate, booking_id: str | None) -> None:
        try:
            student_name = self._student_name(booking.student_id)
            self.notifications.create_notification(
                user_id=booking.teacher_id,
                title="New booking",
                message=f"{student_name} has booked a {booking.subject} lesson with you.",
                type=NotificationType.BOOKING_CONFIRMATION,
                related_id=booking_id,
            )
        except Exception as e:
            logger.error(f"Failed to notify teacher {booking.teacher_id} of booking {booking_id}: {e}")

    def _student_name(self, student_id: str) -> str:
        response = (
            self.client.table("students")
            .select("first_name, last_name")
            .eq("id", student_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        name = join_name(rows[0].get("first_name"), rows[0].get("last_name")) if rows else None
        return name or "A student"

    # -------------------------------------------------------------------------
    # Learning modules (read path)
    # -------------------------------------------------------------------------

    def get_modules_for_subject(self, subject: str) -> list[LearningModule]:
        """
        Modules for a subject; the generated catalogue when none are stored.

        Never raises.
        """
        try:
            response = self.client.table("learning_modules").select("*").eq("subject", subject).execute()
            rows = response.data or []
        except Exception as e:
            logger.warning(f"learning_modules unavailable ({e}), serving generated modules for '{subject}'")
            return catalogue_modules(subject)

        if not rows:
            return catalogue_modules(subject)
        return [map_module(row) for row in rows]

    def get_student_module_progress(self, student_id: str | UUID, module_id: str) -> LearningModule | None:
        """
        A module with the student's completed lessons and percent progress.

        Uses student_progress + learning_modules when both have rows;
        otherwise looks the id up in the generated catalogue with zero
        completed lessons.

        Returns:
            The module with progress, or None if the module is unknown
        """
        student_id_str = normalize_uuid(student_id)

        try:
            stored = self._stored_progress(student_id_str, module_id)
            if stored is not None:
                return stored
        except Exception as e:
            logger.warning(f"Stored progress unavailable for {student_id_str}/{module_id}: {e}")

        for module in self._all_catalogue_modules():
            if module.id == module_id:
                return with_progress(module, 0)
        return None

    def _stored_progress(self, student_id: str, module_id: str) -> LearningModule | None:
        progress = (
            self.client.table("student_progress")
            .select("*")
            .eq("student_id", student_id)
            .eq("module_id", module_id)
            .limit(1)
            .execute()
        ).data or []
        if not progress:
            return None

        modules = (
            self.client.table("learning_modules")
            .select("*")
            .eq("id", module_id)
            .limit(1)
            .execute()
        ).data or []
        if not modules:
            return None

        return with_progress(map_module(modules[0]), int(to_number(progress[0].get("completed_lessons"))))

    @staticmethod
    def _all_catalogue_modules() -> list[LearningModule]:
        modules = [LearningModule(**m) for group in MODULE_CATALOGUE.values() for m in group]
        return modules + [LearningModule(**m) for m in generic_modules("General")]

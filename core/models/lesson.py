# =============================================================================
# core/models/lesson.py - Lesson Schemas
# =============================================================================
# A lesson is the front-end view of a booking row:
# - Lesson: one scheduled lesson with denormalized participant info
# - LessonStatus: lifecycle states of a booking
# - LessonStats: dashboard counters for a user
# - UserRole: which side of the booking the caller is on
#
# Flow: pending -> confirmed -> completed
#       pending/confirmed/rescheduled -> cancelled
# Lessons are never hard-deleted.
# =============================================================================

from enum import Enum

from pydantic import Field

from .base import CamelModel


class LessonStatus(str, Enum):
    """Lifecycle states of a lesson/booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class UserRole(str, Enum):
    """Side of the booking a user is on."""
    STUDENT = "student"
    TEACHER = "teacher"

    @property
    def id_column(self) -> str:
        """Foreign key column on bookings that points at this role."""
        return "student_id" if self is UserRole.STUDENT else "teacher_id"

    @property
    def counterpart_column(self) -> str:
        """Foreign key column for the other participant."""
        return "teacher_id" if self is UserRole.STUDENT else "student_id"


class LessonAction(str, Enum):
    """Status-changing actions on a lesson."""
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"


class Lesson(CamelModel):
    """
    A scheduled lesson as shown in dashboards.

    Example:
        {
            "id": "b1c2...",
            "subject": "Algebra",
            "date": "2026-10-19",
            "startTime": "14:00",
            "endTime": "15:00",
            "status": "confirmed",
            "teacherId": "...",
            "studentId": "...",
            "teacherName": "Ada Lovelace",
            "studentName": "Unknown Student"
        }
    """

    id: str = Field(..., description="Booking identifier")
    subject: str = Field(default="Untitled Lesson", description="Lesson subject or title")
    date: str = Field(..., description="Lesson date (YYYY-MM-DD, UTC)")
    start_time: str = Field(..., description="Start time (HH:MM, UTC)")
    end_time: str = Field(default="", description="End time (HH:MM, UTC)")
    status: LessonStatus = Field(default=LessonStatus.PENDING)
    teacher_id: str | None = None
    student_id: str | None = None
    teacher_name: str = Field(default="Unknown Teacher")
    teacher_avatar: str | None = Field(
        default=None,
        description="Avatar URL; the UI falls back to initials when absent"
    )
    student_name: str = Field(default="Unknown Student")
    student_avatar: str | None = None
    created_at: str | None = None


class LessonStats(CamelModel):
    """Dashboard counters for one user."""
    upcoming_lessons: int = Field(default=0, ge=0)
    completed_lessons: int = Field(default=0, ge=0)
    unique_connections: int = Field(default=0, ge=0)
    total_hours: int = Field(default=0, ge=0)

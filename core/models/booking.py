# =============================================================================
# core/models/booking.py - Booking Schemas
# =============================================================================
# - BookingCreate: input for an immediate booking or a booking request
# - BookingRequest: a student's request waiting for teacher approval
# - BookingRequestStatus: pending / approved / rejected
# =============================================================================

from enum import Enum

from pydantic import Field, field_validator

from .base import CamelModel


class BookingRequestStatus(str, Enum):
    """States of a booking request."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingCreate(CamelModel):
    """
    Input for creating a booking or a booking request.

    Example:
        {
            "teacherId": "...",
            "studentId": "...",
            "subject": "Physics",
            "date": "2026-10-21",
            "startTime": "14:00",
            "endTime": "15:00",
            "startTimeUtc": "2026-10-21T14:00:00+00:00",
            "endTimeUtc": "2026-10-21T15:00:00+00:00"
        }
    """

    teacher_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=200)
    module_id: str | None = Field(default=None, description="Learning module being studied")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}")
    end_time: str = Field(..., pattern=r"^\d{2}:\d{2}")
    start_time_utc: str | None = None
    end_time_utc: str | None = None
    message: str | None = None
    meeting_link: str | None = None
    notes: str | None = None

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, value: str, info):
        """Reject lessons that end before they start."""
        start = info.data.get("start_time")
        if start and value[:5] <= start[:5]:
            raise ValueError("end_time must be after start_time")
        return value


class BookingRequest(CamelModel):
    """A booking request as shown to the teacher."""
    id: str
    student_id: str | None = None
    teacher_id: str | None = None
    student_name: str = "Unknown Student"
    student_avatar: str | None = None
    subject: str = "Lesson"
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    message: str | None = None
    status: str = BookingRequestStatus.PENDING.value
    created_at: str | None = None


class BookingRequestUpdate(CamelModel):
    """Teacher decision on a booking request."""
    status: BookingRequestStatus

    @field_validator("status")
    @classmethod
    def decision_only(cls, value: BookingRequestStatus):
        if value is BookingRequestStatus.PENDING:
            raise ValueError("status must be 'approved' or 'rejected'")
        return value

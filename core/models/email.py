# =============================================================================
# core/models/email.py - Email Payloads
# =============================================================================

from .base import CamelModel


class BookingEmail(CamelModel):
    """Details shared by every booking email."""
    teacher_name: str
    teacher_email: str | None = None
    student_name: str
    student_email: str | None = None
    subject: str
    date: str
    start_time: str
    end_time: str = ""
    meeting_link: str | None = None

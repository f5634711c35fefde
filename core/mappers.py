# =============================================================================
# core/mappers.py - Row -> DTO Mapping
# =============================================================================
# Pure functions that turn raw PostgREST rows into the stable models in
# core/models. A row's shape depends on which fallback strategy produced
# it (RPC result, joined bookings query, view, base table), so every
# mapper tolerates missing keys and substitutes display defaults:
# - "Unknown Teacher" / "Unknown Student" for missing names
# - None avatar (the UI renders initials)
# - "Notification" for a missing title
# - related_id read from related_id, else related_entity_id
# =============================================================================

from __future__ import annotations

from typing import Any, Mapping

from core.models.booking import BookingRequest
from core.models.lesson import Lesson, LessonStatus
from core.models.notification import (
    LEGACY_NOTIFICATION_TYPES,
    Notification,
    NotificationType,
)
from core.models.payment import Payment, PaymentStatus
from core.models.teacher import Teacher
from lib.utils import parse_timestamp, to_number

UNKNOWN_TEACHER = "Unknown Teacher"
UNKNOWN_STUDENT = "Unknown Student"
DEFAULT_NOTIFICATION_TITLE = "Notification"
UNTITLED_LESSON = "Untitled Lesson"

# Legacy payment status names
_LEGACY_PAYMENT_STATUSES = {"completed": PaymentStatus.PAID}


# =============================================================================
# Small helpers
# =============================================================================

def _embedded(value: Any) -> dict[str, Any]:
    """PostgREST embeds a to-one relation as a dict, sometimes as a 1-item list."""
    if isinstance(value, list):
        return value[0] if value and isinstance(value[0], dict) else {}
    return value if isinstance(value, dict) else {}


def _hhmm(value: Any) -> str:
    """Normalize "14:00:00" / "14:00" to "14:00"."""
    return str(value)[:5] if value else ""


def join_name(first: str | None, last: str | None) -> str | None:
    """Concatenate first/last name; None when both are empty."""
    name = " ".join(part for part in (first, last) if part)
    return name or None


def parse_lesson_status(value: Any) -> LessonStatus:
    try:
        return LessonStatus(value)
    except ValueError:
        return LessonStatus.PENDING


def parse_notification_type(value: Any) -> NotificationType:
    if value in LEGACY_NOTIFICATION_TYPES:
        return LEGACY_NOTIFICATION_TYPES[value]
    try:
        return NotificationType(value)
    except ValueError:
        return NotificationType.SYSTEM


def parse_payment_status(value: Any, default: PaymentStatus) -> PaymentStatus:
    if value in _LEGACY_PAYMENT_STATUSES:
        return _LEGACY_PAYMENT_STATUSES[value]
    try:
        return PaymentStatus(value)
    except ValueError:
        return default


# =============================================================================
# Lessons
# =============================================================================

def booking_row_to_lesson_row(booking: Mapping[str, Any]) -> dict[str, Any]:
    """
    Convert a `bookings` row into the row shape the lesson RPCs return.

    Date and times are taken from start_time_utc/end_time_utc (UTC) and
    fall back to the plain date/start_time/end_time columns.
    """
    start = parse_timestamp(booking.get("start_time_utc"))
    end = parse_timestamp(booking.get("end_time_utc"))
    lesson = _embedded(booking.get("lessons"))

    return {
        "id": booking.get("id"),
        "subject": lesson.get("title") or booking.get("subject") or UNTITLED_LESSON,
        "date": start.date().isoformat() if start else booking.get("date"),
        "start_time": start.strftime("%H:%M") if start else _hhmm(booking.get("start_time")),
        "end_time": end.strftime("%H:%M") if end else _hhmm(booking.get("end_time")),
        "status": booking.get("status"),
        "teacher_id": booking.get("teacher_id"),
        "student_id": booking.get("student_id"),
        "created_at": booking.get("created_at"),
    }


def map_profile_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize a participant profile from any source.

    Accepts helper-RPC/view rows (full_name, avatar_url) and base-table
    rows (first_name, last_name, profile_picture_url).
    """
    name = row.get("full_name") or join_name(row.get("first_name"), row.get("last_name"))
    return {
        "id": row.get("id"),
        "full_name": name,
        "avatar_url": row.get("avatar_url") or row.get("profile_picture_url"),
    }


def map_lesson(
    row: Mapping[str, Any],
    teacher: Mapping[str, Any] | None = None,
    student: Mapping[str, Any] | None = None,
) -> Lesson:
    """Build a Lesson from an RPC-shaped row plus participant profiles."""
    teacher = teacher or {}
    student = student or {}

    return Lesson(
        id=str(row.get("id")),
        subject=row.get("subject") or UNTITLED_LESSON,
        date=str(row.get("date") or ""),
        start_time=_hhmm(row.get("start_time")),
        end_time=_hhmm(row.get("end_time")),
        status=parse_lesson_status(row.get("status")),
        teacher_id=row.get("teacher_id"),
        student_id=row.get("student_id"),
        teacher_name=teacher.get("full_name") or UNKNOWN_TEACHER,
        teacher_avatar=teacher.get("avatar_url"),
        student_name=student.get("full_name") or UNKNOWN_STUDENT,
        student_avatar=student.get("avatar_url"),
        created_at=row.get("created_at"),
    )


# =============================================================================
# Notifications
# =============================================================================

def map_notification(row: Mapping[str, Any]) -> Notification:
    """Build a Notification from a row of any schema version."""
    return Notification(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        title=row.get("title") or DEFAULT_NOTIFICATION_TITLE,
        message=row.get("message") or "",
        type=parse_notification_type(row.get("type")),
        is_read=bool(row.get("is_read")),
        created_at=row.get("created_at"),
        related_id=row.get("related_id") or row.get("related_entity_id"),
    )


# =============================================================================
# Payments
# =============================================================================

def map_payment(
    row: Mapping[str, Any],
    teacher_names: Mapping[str, str],
    student_names: Mapping[str, str],
    default_currency: str = "USD",
) -> Payment:
    """Build a Payment from a new-structure row joined through bookings."""
    booking = _embedded(row.get("bookings"))
    lesson = _embedded(booking.get("lessons"))
    subject = _embedded(lesson.get("subjects"))
    start = booking.get("start_time_utc")

    return Payment(
        id=str(row.get("id")),
        amount=to_number(row.get("amount"), 0.0),
        currency=row.get("currency") or default_currency,
        status=parse_payment_status(row.get("status"), PaymentStatus.PENDING_PAYOUT),
        booking_id=row.get("booking_id"),
        created_at=row.get("created_at"),
        payout_date=row.get("payout_date"),
        payment_method=row.get("payment_method") or "Unknown",
        teacher_name=teacher_names.get(booking.get("teacher_id")) or UNKNOWN_TEACHER,
        student_name=student_names.get(booking.get("student_id")) or UNKNOWN_STUDENT,
        lesson_subject=lesson.get("title") or subject.get("name") or "Unknown",
        lesson_date=start.split("T")[0] if start else "Unknown",
    )


def map_legacy_payment(row: Mapping[str, Any], default_currency: str = "USD") -> Payment:
    """Build a Payment from a legacy row keyed by teacher_id."""
    return Payment(
        id=str(row.get("id")),
        amount=to_number(row.get("amount"), 0.0),
        currency=row.get("currency") or default_currency,
        status=parse_payment_status(row.get("status"), PaymentStatus.PAID),
        booking_id=row.get("booking_id") or row.get("lesson_id"),
        created_at=row.get("created_at"),
        payment_method=row.get("payment_method") or "Unknown",
    )


# =============================================================================
# Booking requests
# =============================================================================

def map_booking_request(row: Mapping[str, Any], from_bookings: bool = False) -> BookingRequest:
    """
    Build a BookingRequest from booking_requests, or from a bookings row
    when the requests table does not exist (notes stand in for message).
    """
    student = _embedded(row.get("students"))
    return BookingRequest(
        id=str(row.get("id")),
        student_id=row.get("student_id"),
        teacher_id=row.get("teacher_id"),
        student_name=join_name(student.get("first_name"), student.get("last_name")) or UNKNOWN_STUDENT,
        student_avatar=student.get("profile_picture_url"),
        subject=row.get("subject") or "Lesson",
        date=row.get("date"),
        start_time=row.get("start_time"),
        end_time=row.get("end_time"),
        message=row.get("notes") if from_bookings else row.get("message"),
        status=row.get("status") or "pending",
        created_at=row.get("created_at"),
    )


# =============================================================================
# Teachers
# =============================================================================

def map_teacher(row: Mapping[str, Any]) -> Teacher:
    """Build a Teacher from a `teachers` row."""
    first = row.get("first_name") or ""
    last = row.get("last_name") or ""
    return Teacher(
        id=str(row.get("id")),
        first_name=first,
        last_name=last,
        full_name=join_name(first, last) or "",
        profile_picture_url=row.get("profile_picture_url"),
        intro_video_url=row.get("intro_video_url"),
        bio=row.get("bio"),
        qualifications=row.get("qualifications") or {},
        experience=row.get("experience"),
        time_zone=row.get("time_zone"),
        is_verified=bool(row.get("is_verified")),
        average_rating=to_number(row.get("average_rating"), 0.0),
        contact_number=row.get("contact_number"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )

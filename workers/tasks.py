# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background work that should not hold up an API request.
#
# Tasks:
# - send_booking_confirmation: email both participants about a new booking
# - send_booking_cancellation: email both participants about a cancellation
# - send_lesson_reminders: periodic; notify and email about lessons that
#   start REMINDER_WINDOW_HOURS from now
#
# Tasks build their services around the shared Supabase client and return
# plain dicts (JSON result backend).
# =============================================================================

import logging
from datetime import timedelta
from typing import Any

from celery import shared_task

from app.config import settings
from core.models.email import BookingEmail
from core.models.lesson import Lesson
from core.models.notification import NotificationType
from core.services.email_service import EmailResult, EmailService
from core.services.lesson_service import LessonService
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

# How often beat runs the reminder scan; each run covers one slice this long
REMINDER_SCAN_INTERVAL = timedelta(hours=1)


# =============================================================================
# Helpers
# =============================================================================

def enqueue(task, *args) -> str | None:
    """
    Queue a task without letting a broker outage fail the caller.

    Returns:
        Celery task id, or None if the task could not be queued
    """
    try:
        return task.delay(*args).id
    except Exception as e:
        logger.warning(f"Could not enqueue {task.name}{args}: {e}")
        return None


def participant_emails(client, lesson: Lesson) -> dict[str, str]:
    """id -> email for the lesson's teacher and student (public.users)."""
    ids = [i for i in (lesson.teacher_id, lesson.student_id) if i]
    if not ids:
        return {}
    try:
        response = client.table("users").select("id, email").in_("id", ids).execute()
    except Exception as e:
        logger.warning(f"Could not load participant emails for lesson {lesson.id}: {e}")
        return {}
    return {str(row["id"]): row.get("email") for row in (response.data or []) if row.get("email")}


def booking_email(lesson: Lesson, emails: dict[str, str]) -> BookingEmail:
    return BookingEmail(
        teacher_name=lesson.teacher_name,
        teacher_email=emails.get(str(lesson.teacher_id)),
        student_name=lesson.student_name,
        student_email=emails.get(str(lesson.student_id)),
        subject=lesson.subject,
        date=lesson.date,
        start_time=lesson.start_time,
        end_time=lesson.end_time,
    )


def _result(lesson_id: str, result: EmailResult) -> dict[str, Any]:
    return {"lesson_id": lesson_id, "success": result.success, "message": result.message}


def _send_lesson_email(lesson_id: str, kind: str) -> dict[str, Any]:
    client = SupabaseClient.get_client()
    lesson = LessonService(client).get_lesson(lesson_id)
    if lesson is None:
        logger.warning(f"Lesson {lesson_id} not found, no {kind} email sent")
        return {"lesson_id": lesson_id, "success": False, "message": "Lesson not found"}

    email = booking_email(lesson, participant_emails(client, lesson))
    sender = EmailService()
    send = sender.send_booking_confirmation if kind == "confirmation" else sender.send_booking_cancellation
    return _result(lesson_id, send(email))


# =============================================================================
# Booking Emails
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_booking_confirmation")
def send_booking_confirmation(self, lesson_id: str) -> dict[str, Any]:
    """
    Email teacher and student that a lesson was booked.

    Returns:
        Dict with lesson_id, success and message
    """
    logger.info(f"Sending booking confirmation for lesson {lesson_id}")
    return _send_lesson_email(lesson_id, "confirmation")


@shared_task(bind=True, name="workers.tasks.send_booking_cancellation")
def send_booking_cancellation(self, lesson_id: str) -> dict[str, Any]:
    """Email teacher and student that a lesson was cancelled."""
    logger.info(f"Sending booking cancellation for lesson {lesson_id}")
    return _send_lesson_email(lesson_id, "cancellation")


# =============================================================================
# Lesson Reminders (periodic)
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_lesson_reminders")
def send_lesson_reminders(self) -> dict[str, Any]:
    """
    Remind participants of confirmed lessons starting soon.

    Each run covers lessons starting in [hour + REMINDER_WINDOW_HOURS,
    hour + REMINDER_WINDOW_HOURS + 1h), where hour is the current time
    truncated to the hour. Windows of consecutive hourly runs tile without
    gaps or overlap even when beat fires late.

    Returns:
        Dict with counts of lessons, notifications and emails
    """
    client = SupabaseClient.get_client()
    lessons_service = LessonService(client)
    notifications = NotificationService(client)
    sender = EmailService()

    hour = utc_now().replace(minute=0, second=0, microsecond=0)
    start = hour + timedelta(hours=settings.REMINDER_WINDOW_HOURS)
    lessons = lessons_service.get_lessons_starting_between(start, start + REMINDER_SCAN_INTERVAL)

    notified = 0
    emailed = 0
    for lesson in lessons:
        message = f"Your {lesson.subject} lesson starts on {lesson.date} at {lesson.start_time} UTC."
        for user_id in (lesson.teacher_id, lesson.student_id):
            if not user_id:
                continue
            try:
                notifications.create_notification(
                    user_id=user_id,
                    title="Lesson reminder",
                    message=message,
                    type=NotificationType.LESSON_REMINDER,
                    related_id=lesson.id,
                )
                notified += 1
            except Exception as e:
                logger.error(f"Failed to create reminder for {user_id} (lesson {lesson.id}): {e}")

        result = sender.send_lesson_reminder(booking_email(lesson, participant_emails(client, lesson)))
        if result.success:
            emailed += 1

    logger.info(f"Lesson reminders: {len(lessons)} lessons, {notified} notifications, {emailed} emails")
    return {"lessons": len(lessons), "notifications": notified, "emails": emailed}

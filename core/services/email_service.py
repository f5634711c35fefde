# =============================================================================
# core/services/email_service.py - Transactional Email (mock)
# =============================================================================
# No email provider is wired up yet. Each send logs both recipients, waits
# EMAIL_MOCK_DELAY_SECONDS to stand in for the provider round trip, and
# reports success. Called from the Celery tasks in workers/tasks.py.
# =============================================================================

import logging
import time
from dataclasses import dataclass
from typing import Callable

from app.config import settings
from core.models.email import BookingEmail

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    """Outcome of a send."""
    success: bool
    message: str


class EmailService:
    """
    Mock email sender.

    Args:
        delay_seconds: Simulated provider latency (defaults to settings)
        sleep: Sleep function (injectable for tests)
    """

    def __init__(
        self,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.delay_seconds = settings.EMAIL_MOCK_DELAY_SECONDS if delay_seconds is None else delay_seconds
        self.sleep = sleep

    def _send(self, kind: str, email: BookingEmail) -> EmailResult:
        try:
            logger.info(f"Sending {kind} email to teacher: {email.teacher_email}")
            logger.info(f"Sending {kind} email to student: {email.student_email}")
            self.sleep(self.delay_seconds)
        except Exception as e:
            logger.error(f"Error sending {kind} emails: {e}")
            return EmailResult(success=False, message=f"Failed to send {kind} emails")

        return EmailResult(success=True, message=f"{kind.capitalize()} emails sent successfully")

    def send_booking_confirmation(self, email: BookingEmail) -> EmailResult:
        """Confirmation to teacher and student."""
        return self._send("booking confirmation", email)

    def send_booking_cancellation(self, email: BookingEmail) -> EmailResult:
        """Cancellation notice to teacher and student."""
        return self._send("booking cancellation", email)

    def send_lesson_reminder(self, email: BookingEmail) -> EmailResult:
        """Reminder about an upcoming lesson."""
        return self._send("lesson reminder", email)

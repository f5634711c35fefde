# =============================================================================
# tests/test_email_service.py - Mock Email Sender Tests
# =============================================================================

import logging

import pytest

from core.models.email import BookingEmail
from core.services.email_service import EmailResult, EmailService


@pytest.fixture
def email():
    return BookingEmail(
        teacher_name="Ada Lovelace",
        teacher_email="ada@example.com",
        student_name="Sam Student",
        student_email="sam@example.com",
        subject="Algebra",
        date="2026-10-21",
        start_time="14:00",
        end_time="15:00",
    )


class TestEmailService:
    """The mock sender logs, waits and reports success."""

    def test_confirmation(self, email):
        delays = []
        result = EmailService(delay_seconds=1.5, sleep=delays.append).send_booking_confirmation(email)

        assert result == EmailResult(success=True, message="Booking confirmation emails sent successfully")
        assert delays == [1.5]

    def test_cancellation(self, email):
        result = EmailService(delay_seconds=0, sleep=lambda _: None).send_booking_cancellation(email)
        assert result.message == "Booking cancellation emails sent successfully"

    def test_reminder_logs_both_recipients(self, email, caplog):
        with caplog.at_level(logging.INFO, logger="core.services.email_service"):
            EmailService(delay_seconds=0, sleep=lambda _: None).send_lesson_reminder(email)

        assert "ada@example.com" in caplog.text
        assert "sam@example.com" in caplog.text

    def test_failure_reported(self, email):
        def broken_sleep(_):
            raise RuntimeError("interrupted")

        result = EmailService(delay_seconds=0, sleep=broken_sleep).send_booking_confirmation(email)

        assert result.success is False
        assert result.message == "Failed to send booking confirmation emails"

    def test_default_delay_from_settings(self):
        """conftest sets EMAIL_MOCK_DELAY_SECONDS=0."""
        assert EmailService().delay_seconds == 0

# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - A fixed clock (2026-10-19 10:00 UTC) so "today" is deterministic
# - FakeSupabase databases in the current and the legacy layouts
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("EMAIL_MOCK_DELAY_SECONDS", "0")

from datetime import datetime, timezone

import pytest

from tests.fakes import FakeSupabase

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)

TEACHER_ID = "11111111-1111-1111-1111-111111111111"
STUDENT_ID = "22222222-2222-2222-2222-222222222222"
OTHER_STUDENT_ID = "33333333-3333-3333-3333-333333333333"


def fixed_clock() -> datetime:
    return NOW


def booking_row(
    booking_id: str,
    start: str,
    end: str,
    status: str = "confirmed",
    title: str = "Algebra",
    teacher_id: str = TEACHER_ID,
    student_id: str = STUDENT_ID,
    duration: int = 60,
) -> dict:
    """A bookings row with its embedded lessons relation."""
    return {
        "id": booking_id,
        "teacher_id": teacher_id,
        "student_id": student_id,
        "lesson_id": f"lesson-{booking_id}",
        "status": status,
        "start_time_utc": start,
        "end_time_utc": end,
        "created_at": "2026-10-01T09:00:00+00:00",
        "lessons": {"title": title, "duration_minutes": duration},
    }


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Fixed clock at 2026-10-19 10:00 UTC."""
    return fixed_clock


@pytest.fixture
def teachers_rows():
    return [
        {"id": TEACHER_ID, "first_name": "Ada", "last_name": "Lovelace", "profile_picture_url": "https://cdn/ada.png"},
    ]


@pytest.fixture
def students_rows():
    return [
        {"id": STUDENT_ID, "first_name": "Sam", "last_name": "Student", "profile_picture_url": None},
        {"id": OTHER_STUDENT_ID, "first_name": "Olive", "last_name": "Other", "profile_picture_url": None},
    ]


@pytest.fixture
def db(teachers_rows, students_rows):
    """
    Database in the current layout, without any RPCs or profile views.

    Bookings: one today (14:00), one tomorrow, one yesterday (completed),
    one last week (completed, other student).
    """
    return FakeSupabase(
        tables={
            "bookings": [
                booking_row("b-today", "2026-10-19T14:00:00+00:00", "2026-10-19T15:00:00+00:00"),
                booking_row("b-tomorrow", "2026-10-20T09:00:00+00:00", "2026-10-20T10:00:00+00:00",
                            status="pending", title="Geometry"),
                booking_row("b-yesterday", "2026-10-18T16:00:00+00:00", "2026-10-18T17:30:00+00:00",
                            status="completed", title="Calculus", duration=90),
                booking_row("b-last-week", "2026-10-12T08:00:00+00:00", "2026-10-12T09:00:00+00:00",
                            status="completed", title="Statistics", student_id=OTHER_STUDENT_ID),
            ],
            "teachers": teachers_rows,
            "students": students_rows,
        },
    )


@pytest.fixture
def empty_db():
    """A database with no tables at all."""
    return FakeSupabase()

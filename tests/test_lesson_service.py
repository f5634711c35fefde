# =============================================================================
# tests/test_lesson_service.py - Lesson Service Tests
# =============================================================================
# Covers:
# - upcoming/past classification against a fixed "now" (2026-10-19 10:00 UTC)
# - ordering of both lists
# - RPC -> bookings query fallback, and [] when everything fails
# - participant name resolution (helper RPC -> view -> base tables)
# - stats and status transitions
#
# Run with: pytest tests/test_lesson_service.py -v
# =============================================================================

from datetime import datetime, timezone

import pytest

from app.exceptions import (
    DatabaseWriteError,
    InvalidLessonTransitionError,
    LessonNotFoundError,
    LessonPermissionError,
)
from core.models.lesson import Lesson, LessonAction, LessonStats, LessonStatus, UserRole
from core.services.lesson_service import is_upcoming, sort_lessons, start_of_day, LessonService
from tests.conftest import NOW, OTHER_STUDENT_ID, STUDENT_ID, TEACHER_ID, booking_row, fixed_clock
from tests.fakes import FakeSupabase, api_error, returning, rpc_calls


def lesson(date: str, start: str, lesson_id: str = "x") -> Lesson:
    return Lesson(id=lesson_id, date=date, start_time=start)


# =============================================================================
# Classification & ordering
# =============================================================================

class TestClassification:
    """Tests for is_upcoming / start_of_day."""

    def test_later_today_is_upcoming(self):
        assert is_upcoming(lesson("2026-10-19", "14:00"), NOW)

    def test_earlier_today_is_still_upcoming(self):
        """A lesson on today's date stays upcoming after it started."""
        assert is_upcoming(lesson("2026-10-19", "08:00"), NOW)

    def test_future_day_is_upcoming(self):
        assert is_upcoming(lesson("2026-10-25", "00:00"), NOW)

    def test_yesterday_is_past(self):
        assert not is_upcoming(lesson("2026-10-18", "23:59"), NOW)

    def test_unparseable_time_uses_date(self):
        assert is_upcoming(lesson("2026-10-20", "soon"), NOW)
        assert not is_upcoming(lesson("2026-10-10", "soon"), NOW)

    def test_start_of_day(self):
        assert start_of_day(NOW) == datetime(2026, 10, 19, tzinfo=timezone.utc)


class TestSortLessons:
    """Tests for sort_lessons."""

    def test_upcoming_ascending(self):
        lessons = [lesson("2026-10-20", "09:00", "c"), lesson("2026-10-19", "14:00", "b"), lesson("2026-10-19", "09:30", "a")]
        assert [l.id for l in sort_lessons(lessons, upcoming=True)] == ["a", "b", "c"]

    def test_past_descending(self):
        lessons = [lesson("2026-10-12", "08:00", "c"), lesson("2026-10-18", "16:00", "a"), lesson("2026-10-18", "09:00", "b")]
        assert [l.id for l in sort_lessons(lessons, upcoming=False)] == ["a", "b", "c"]

    def test_time_is_compared_as_hhmm_string(self):
        """09:00 sorts before 10:00 because HH:MM is zero padded."""
        lessons = [lesson("2026-10-19", "10:00", "late"), lesson("2026-10-19", "09:00", "early")]
        assert [l.id for l in sort_lessons(lessons, upcoming=True)] == ["early", "late"]


# =============================================================================
# Lesson lists
# =============================================================================

class TestUpcomingScenario:
    """A student with one confirmed lesson today at 14:00-15:00."""

    def test_single_lesson_today(self, teachers_rows, students_rows):
        """One Lesson, today's date, 14:00 start, teacher name from the teacher record."""
        db = FakeSupabase(tables={
            "bookings": [booking_row("b1", "2026-10-19T14:00:00+00:00", "2026-10-19T15:00:00+00:00")],
            "teachers": teachers_rows,
            "students": students_rows,
        })
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert len(lessons) == 1
        only = lessons[0]
        assert only.date == "2026-10-19"
        assert only.start_time == "14:00"
        assert only.end_time == "15:00"
        assert only.status is LessonStatus.CONFIRMED
        assert only.teacher_name == "Ada Lovelace"
        assert only.teacher_avatar == "https://cdn/ada.png"
        assert only.student_name == "Sam Student"

    def test_serialized_shape(self, db):
        """The API receives camelCase keys."""
        service = LessonService(db, clock=fixed_clock)
        dumped = service.get_upcoming_lessons(STUDENT_ID, UserRole.STUDENT)[0].model_dump(by_alias=True)

        assert dumped["startTime"] == "14:00"
        assert dumped["teacherName"] == "Ada Lovelace"


class TestLessonLists:
    """Upcoming/past lists over the shared fixture database."""

    def test_upcoming_for_student(self, db):
        service = LessonService(db, clock=fixed_clock)
        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")
        assert [l.id for l in lessons] == ["b-today", "b-tomorrow"]

    def test_past_for_student(self, db):
        service = LessonService(db, clock=fixed_clock)
        lessons = service.get_past_lessons(STUDENT_ID, "student")
        assert [l.id for l in lessons] == ["b-yesterday"]

    def test_past_for_teacher_descending(self, db):
        service = LessonService(db, clock=fixed_clock)
        lessons = service.get_past_lessons(TEACHER_ID, "teacher")

        assert [l.id for l in lessons] == ["b-yesterday", "b-last-week"]
        assert lessons[1].student_name == "Olive Other"

    def test_sets_are_disjoint_and_complete(self, db):
        """Every booking of the user lands in exactly one list."""
        service = LessonService(db, clock=fixed_clock)
        upcoming = {l.id for l in service.get_upcoming_lessons(TEACHER_ID, "teacher")}
        past = {l.id for l in service.get_past_lessons(TEACHER_ID, "teacher")}

        assert upcoming.isdisjoint(past)
        assert upcoming | past == {row["id"] for row in db.tables["bookings"]}

    def test_fallback_has_no_status_filter(self, db):
        """Cancelled lessons still appear (the UI shows their status)."""
        db.tables["bookings"].append(
            booking_row("b-cancelled", "2026-10-21T09:00:00+00:00", "2026-10-21T10:00:00+00:00", status="cancelled")
        )
        service = LessonService(db, clock=fixed_clock)

        ids = [l.id for l in service.get_upcoming_lessons(STUDENT_ID, "student")]
        assert "b-cancelled" in ids

    def test_invalid_role(self, db):
        with pytest.raises(ValueError):
            LessonService(db, clock=fixed_clock).get_upcoming_lessons(STUDENT_ID, "admin")


class TestLessonFallbacks:
    """RPC first, bookings query second, [] last."""

    def test_rpc_result_is_used(self, db):
        """When the RPC works the bookings table is not queried."""
        db.rpcs["get_upcoming_lessons"] = returning([
            {"id": "r1", "subject": "Piano", "date": "2026-10-22", "start_time": "11:00:00", "end_time": "12:00:00",
             "status": "confirmed", "teacher_id": TEACHER_ID, "student_id": STUDENT_ID},
        ])
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert [l.id for l in lessons] == ["r1"]
        assert lessons[0].subject == "Piano"
        assert db.calls_to("get_upcoming_lessons")[0].payload == {"user_id": STUDENT_ID, "role": "student"}
        assert db.calls_to("bookings") == []

    def test_rpc_rows_are_reclassified(self, db):
        """Rows the RPC put in the wrong list are filtered out."""
        db.rpcs["get_upcoming_lessons"] = returning([
            {"id": "old", "date": "2026-10-01", "start_time": "09:00", "status": "completed"},
            {"id": "new", "date": "2026-10-30", "start_time": "09:00", "status": "confirmed"},
        ])
        service = LessonService(db, clock=fixed_clock)

        assert [l.id for l in service.get_upcoming_lessons(STUDENT_ID, "student")] == ["new"]

    def test_rpc_failure_runs_fallback_once(self, db):
        """The bookings query runs exactly once and its rows are returned."""
        db.rpcs["get_upcoming_lessons"] = api_error("42883", "function does not exist")
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert [l.id for l in lessons] == ["b-today", "b-tomorrow"]
        assert len(db.calls_to("bookings", "select")) == 1

    def test_everything_fails_returns_empty(self, db):
        """No RPC and a broken bookings table: [] and no exception."""
        db.fail("bookings", api_error("57014", "statement timeout"))
        service = LessonService(db, clock=fixed_clock)

        assert service.get_upcoming_lessons(STUDENT_ID, "student") == []
        assert service.get_past_lessons(STUDENT_ID, "student") == []

    def test_clock_failure_returns_empty(self, db):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        assert LessonService(db, clock=broken_clock).get_upcoming_lessons(STUDENT_ID, "student") == []


class TestProfiles:
    """Participant display info."""

    def test_helper_rpc_preferred(self, db):
        db.rpcs["get_teacher_profile_info"] = returning([
            {"id": TEACHER_ID, "full_name": "Prof. Ada", "avatar_url": None},
        ])
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert lessons[0].teacher_name == "Prof. Ada"
        assert db.calls_to("get_teacher_profile_info")[0].payload == {"teacher_ids": [TEACHER_ID]}
        assert db.calls_to("teachers") == []

    def test_profile_view(self, db):
        db.tables["student_profiles"] = [{"id": STUDENT_ID, "full_name": "Samuel S.", "avatar_url": "s.png"}]
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert lessons[0].student_name == "Samuel S."
        assert lessons[0].student_avatar == "s.png"

    def test_all_profile_sources_missing(self, db):
        """Names fall back to the Unknown placeholders."""
        del db.tables["teachers"]
        service = LessonService(db, clock=fixed_clock)

        lessons = service.get_upcoming_lessons(STUDENT_ID, "student")

        assert lessons[0].teacher_name == "Unknown Teacher"
        assert lessons[0].teacher_avatar is None

    def test_fetch_profiles_batches_ids(self, db):
        service = LessonService(db)
        profiles = service.fetch_profiles("student", [STUDENT_ID, OTHER_STUDENT_ID])

        assert set(profiles) == {STUDENT_ID, OTHER_STUDENT_ID}
        assert len(db.calls_to("students")) == 1

    def test_fetch_profiles_empty(self, db):
        assert LessonService(db).fetch_profiles("teacher", []) == {}
        assert db.calls == []


# =============================================================================
# Single lessons & reminder window
# =============================================================================

class TestSingleLesson:
    def test_get_lesson(self, db):
        found = LessonService(db).get_lesson("b-today")
        assert found.subject == "Algebra"
        assert found.teacher_name == "Ada Lovelace"

    def test_get_missing_lesson(self, db):
        assert LessonService(db).get_lesson("nope") is None

    def test_lessons_starting_between(self, db):
        """Only confirmed lessons inside [start, end)."""
        service = LessonService(db)
        start = datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)
        end = datetime(2026, 10, 21, tzinfo=timezone.utc)

        lessons = service.get_lessons_starting_between(start, end)

        # b-tomorrow is pending, so only today's confirmed lesson is included
        assert [l.id for l in lessons] == ["b-today"]


# =============================================================================
# Stats
# =============================================================================

class TestLessonStats:
    """Tests for get_lesson_stats."""

    def test_rpc(self, db):
        db.rpcs["get_lesson_stats"] = returning([
            {"upcoming_lessons": 3, "completed_lessons": 7, "unique_connections": 2, "total_hours": None},
        ])
        stats = LessonService(db, clock=fixed_clock).get_lesson_stats(STUDENT_ID, "student")

        assert stats == LessonStats(upcoming_lessons=3, completed_lessons=7, unique_connections=2, total_hours=0)

    def test_direct_queries_for_teacher(self, db):
        """Fallback counts from bookings; hours are rounded half-up."""
        stats = LessonService(db, clock=fixed_clock).get_lesson_stats(TEACHER_ID, "teacher")

        assert stats.upcoming_lessons == 2
        assert stats.completed_lessons == 2
        assert stats.unique_connections == 2
        # 90 + 60 minutes = 2.5 hours -> 3
        assert stats.total_hours == 3

    def test_empty_rpc_row_falls_back(self, db):
        db.rpcs["get_lesson_stats"] = returning([])
        stats = LessonService(db, clock=fixed_clock).get_lesson_stats(STUDENT_ID, "student")

        assert stats.completed_lessons == 1
        assert stats.unique_connections == 1

    def test_all_fail_zeroes(self, empty_db):
        assert LessonService(empty_db, clock=fixed_clock).get_lesson_stats(STUDENT_ID, "student") == LessonStats()


# =============================================================================
# Status changes
# =============================================================================

class TestUpdateLessonStatus:
    """Tests for update_lesson_status."""

    def test_teacher_confirms_pending(self, db):
        updated = LessonService(db).update_lesson_status("b-tomorrow", LessonAction.CONFIRM, TEACHER_ID)

        assert updated.status is LessonStatus.CONFIRMED
        assert db.tables["bookings"][1]["status"] == "confirmed"
        assert db.calls_to("bookings", "update")[0].payload == {"status": "confirmed"}

    def test_student_cancels(self, db):
        updated = LessonService(db).update_lesson_status("b-today", "cancel", STUDENT_ID)
        assert updated.status is LessonStatus.CANCELLED

    def test_student_cannot_confirm(self, db):
        with pytest.raises(LessonPermissionError):
            LessonService(db).update_lesson_status("b-tomorrow", "confirm", STUDENT_ID)

    def test_stranger_cannot_cancel(self, db):
        with pytest.raises(LessonPermissionError):
            LessonService(db).update_lesson_status("b-today", "cancel", OTHER_STUDENT_ID)

    def test_completed_cannot_be_cancelled(self, db):
        with pytest.raises(InvalidLessonTransitionError) as exc_info:
            LessonService(db).update_lesson_status("b-yesterday", "cancel", TEACHER_ID)
        assert exc_info.value.status_code == 409

    def test_missing_lesson(self, db):
        with pytest.raises(LessonNotFoundError):
            LessonService(db).update_lesson_status("nope", "cancel", TEACHER_ID)

    def test_write_failure_propagates(self, db):
        """Write paths raise instead of degrading."""
        db.fail("bookings", api_error("42501", "permission denied"), operation="update")

        with pytest.raises(DatabaseWriteError) as exc_info:
            LessonService(db).update_lesson_status("b-today", "complete", TEACHER_ID)
        assert exc_info.value.details["db_code"] == "42501"

    def test_no_rpc_calls_on_write(self, db):
        LessonService(db).update_lesson_status("b-today", "complete", TEACHER_ID)
        assert "get_upcoming_lessons" not in rpc_calls(db)

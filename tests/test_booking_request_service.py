# =============================================================================
# tests/test_booking_request_service.py - Booking Request Tests
# =============================================================================

import pytest

from app.exceptions import DatabaseWriteError
from core.models.booking import BookingRequestStatus
from core.services.booking_request_service import BookingRequestService
from tests.conftest import STUDENT_ID, TEACHER_ID, fixed_clock
from tests.fakes import FakeSupabase, api_error

STUDENT_EMBED = {"id": STUDENT_ID, "first_name": "Sam", "last_name": "Student", "profile_picture_url": None}


@pytest.fixture
def requests_db():
    return FakeSupabase(tables={"booking_requests": [
        {"id": "r1", "teacher_id": TEACHER_ID, "student_id": STUDENT_ID, "subject": "Algebra", "date": "2026-10-22",
         "start_time": "10:00", "end_time": "11:00", "message": "Exam prep", "status": "pending",
         "created_at": "2026-10-17T08:00:00+00:00", "updated_at": None, "students": STUDENT_EMBED},
        {"id": "r2", "teacher_id": TEACHER_ID, "student_id": STUDENT_ID, "subject": "Geometry", "date": "2026-10-23",
         "start_time": "10:00", "end_time": "11:00", "message": "", "status": "approved",
         "created_at": "2026-10-18T08:00:00+00:00", "updated_at": None, "students": STUDENT_EMBED},
        {"id": "r3", "teacher_id": "another-teacher", "student_id": STUDENT_ID, "subject": "Art", "date": "2026-10-23",
         "start_time": "10:00", "end_time": "11:00", "message": "", "status": "pending",
         "created_at": "2026-10-18T09:00:00+00:00", "updated_at": None, "students": STUDENT_EMBED},
    ]})


@pytest.fixture
def bookings_only_db():
    """Older database without booking_requests."""
    return FakeSupabase(tables={"bookings": [
        {"id": "b1", "teacher_id": TEACHER_ID, "student_id": STUDENT_ID, "subject": "Algebra", "notes": "first lesson",
         "status": "pending", "created_at": "2026-10-17T08:00:00+00:00", "updated_at": None, "students": STUDENT_EMBED},
        {"id": "b2", "teacher_id": TEACHER_ID, "student_id": STUDENT_ID, "subject": "Algebra", "notes": "",
         "status": "confirmed", "created_at": "2026-10-18T08:00:00+00:00", "updated_at": None, "students": STUDENT_EMBED},
    ]})


class TestGetTeacherBookingRequests:
    """Tests for get_teacher_booking_requests."""

    def test_requests_table(self, requests_db):
        requests = BookingRequestService(requests_db).get_teacher_booking_requests(TEACHER_ID)

        assert [r.id for r in requests] == ["r2", "r1"]
        assert requests[1].student_name == "Sam Student"
        assert requests[1].message == "Exam prep"

    def test_bookings_fallback(self, bookings_only_db):
        """Only request-like statuses; notes become the message."""
        requests = BookingRequestService(bookings_only_db).get_teacher_booking_requests(TEACHER_ID)

        assert [r.id for r in requests] == ["b1"]
        assert requests[0].message == "first lesson"

    def test_no_tables(self):
        assert BookingRequestService(FakeSupabase()).get_teacher_booking_requests(TEACHER_ID) == []

    def test_outage(self, requests_db):
        requests_db.fail("booking_requests", api_error("57014", "timeout"))
        assert BookingRequestService(requests_db).get_teacher_booking_requests(TEACHER_ID) == []


class TestUpdateBookingRequestStatus:
    """Tests for update_booking_request_status."""

    def test_approve(self, requests_db):
        service = BookingRequestService(requests_db, clock=fixed_clock)

        assert service.update_booking_request_status("r1", BookingRequestStatus.APPROVED, TEACHER_ID) is True

        row = requests_db.tables["booking_requests"][0]
        assert row["status"] == "approved"
        assert row["updated_at"] == "2026-10-19T10:00:00+00:00"

    def test_reject_in_bookings(self, bookings_only_db):
        service = BookingRequestService(bookings_only_db, clock=fixed_clock)

        assert service.update_booking_request_status("b1", "rejected", TEACHER_ID) is True
        assert bookings_only_db.tables["bookings"][0]["status"] == "rejected"

    def test_other_teachers_request_untouched(self, requests_db):
        """r3 is addressed to another teacher; answering it matches no row."""
        service = BookingRequestService(requests_db, clock=fixed_clock)

        assert service.update_booking_request_status("r3", "approved", TEACHER_ID) is False
        assert requests_db.tables["booking_requests"][2]["status"] == "pending"
        assert requests_db.tables["booking_requests"][2]["updated_at"] is None

    def test_student_cannot_answer(self, requests_db):
        service = BookingRequestService(requests_db, clock=fixed_clock)

        assert service.update_booking_request_status("r1", "rejected", STUDENT_ID) is False
        assert requests_db.tables["booking_requests"][0]["status"] == "pending"

    def test_confirmed_booking_not_rewritten(self, bookings_only_db):
        """Without booking_requests, confirmed lessons are not requests."""
        service = BookingRequestService(bookings_only_db, clock=fixed_clock)

        assert service.update_booking_request_status("b2", "rejected", TEACHER_ID) is False
        assert bookings_only_db.tables["bookings"][1]["status"] == "confirmed"

    def test_unknown_request(self, requests_db):
        assert BookingRequestService(requests_db).update_booking_request_status("nope", "approved", TEACHER_ID) is False

    def test_no_tables(self):
        assert BookingRequestService(FakeSupabase()).update_booking_request_status("r1", "approved", TEACHER_ID) is False

    def test_write_failure_raises(self, requests_db):
        requests_db.fail("booking_requests", api_error("42501", "permission denied"), operation="update")

        with pytest.raises(DatabaseWriteError):
            BookingRequestService(requests_db).update_booking_request_status("r1", "approved", TEACHER_ID)

    def test_invalid_status(self, requests_db):
        with pytest.raises(ValueError):
            BookingRequestService(requests_db).update_booking_request_status("r1", "maybe", TEACHER_ID)

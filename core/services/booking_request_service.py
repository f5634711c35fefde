# =============================================================================
# core/services/booking_request_service.py - Booking Requests for Teachers
# =============================================================================
# Requests live in `booking_requests` on newer databases. Older ones only
# have `bookings`, where pending/approved/rejected rows play the same role
# and `notes` stands in for the request message.
# =============================================================================

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from supabase import Client

from app.exceptions import DatabaseWriteError
from core.mappers import map_booking_request
from core.models.booking import BookingRequest, BookingRequestStatus
from lib.schema import ColumnProber
from lib.supabase_client import error_code
from lib.utils import normalize_uuid, utc_now

logger = logging.getLogger(__name__)

REQUEST_COLUMNS = "*, students:student_id(id, first_name, last_name, profile_picture_url)"

REQUEST_LIKE_STATUSES = [status.value for status in BookingRequestStatus]


class BookingRequestService:
    """
    Service for listing and answering booking requests.

    Args:
        client: Supabase client handle
        prober: Table existence checks (defaults to an uncached prober)
        clock: Returns the current UTC time (updated_at)
    """

    def __init__(
        self,
        client: Client,
        prober: ColumnProber | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.prober = prober or ColumnProber(client)
        self.clock = clock

    def _request_table(self) -> str | None:
        """booking_requests if present, else bookings, else None."""
        for table in ("booking_requests", "bookings"):
            if self.prober.table_exists(table):
                return table
        return None

    def get_teacher_booking_requests(self, teacher_id: str | UUID) -> list[BookingRequest]:
        """
        Booking requests addressed to a teacher, newest first.

        Returns:
            Requests from booking_requests, else request-like bookings;
            [] when neither table exists or on failure
        """
        teacher_id_str = normalize_uuid(teacher_id)

        try:
            table = self._request_table()
            if table is None:
                logger.warning("No booking_requests or bookings table found")
                return []

            query = self.client.table(table).select(REQUEST_COLUMNS).eq("teacher_id", teacher_id_str)
            from_bookings = table == "bookings"
            if from_bookings:
                query = query.in_("status", REQUEST_LIKE_STATUSES)

            response = query.order("created_at", desc=True).execute()
            return [map_booking_request(row, from_bookings=from_bookings) for row in (response.data or [])]

        except Exception as e:
            logger.error(f"Failed to fetch booking requests for teacher {teacher_id_str}: {e}")
            return []

    def update_booking_request_status(
        self,
        request_id: str | UUID,
        status: BookingRequestStatus | str,
        teacher_id: str | UUID,
    ) -> bool:
        """
        Approve or reject a booking request addressed to `teacher_id`.

        On databases without booking_requests only request-like bookings
        rows (pending/approved/rejected) can be answered, so confirmed or
        completed lessons are never rewritten here.

        Returns:
            True if a request was updated; False if no table or row matched
            (including requests addressed to another teacher)

        Raises:
            DatabaseWriteError: If probing or the update fails
        """
        request_id_str = normalize_uuid(request_id)
        teacher_id_str = normalize_uuid(teacher_id)
        status = BookingRequestStatus(status)

        try:
            table = self._request_table()
        except Exception as e:
            raise DatabaseWriteError("update booking request", str(e), error_code(e))

        if table is None:
            logger.warning(f"No booking_requests or bookings table found, request {request_id_str} not updated")
            return False

        try:
            query = (
                self.client.table(table)
                .update({"status": status.value, "updated_at": self.clock().isoformat()})
                .eq("id", request_id_str)
                .eq("teacher_id", teacher_id_str)
            )
            if table == "bookings":
                query = query.in_("status", REQUEST_LIKE_STATUSES)
            response = query.execute()
        except Exception as e:
            logger.error(f"Failed to update booking request {request_id_str}: {e}")
            raise DatabaseWriteError("update booking request", str(e), error_code(e))

        updated = bool(response.data)
        if updated:
            logger.info(f"Booking request {request_id_str} in {table} -> {status.value} by teacher {teacher_id_str}")
        else:
            logger.warning(f"No booking request {request_id_str} for teacher {teacher_id_str} in {table}")
        return updated

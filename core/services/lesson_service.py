# =============================================================================
# core/services/lesson_service.py - Lesson Business Logic
# =============================================================================
# Reads lessons (bookings) for the dashboards and applies status changes.
#
# Read path (never raises, degrades to [] / zeroed stats):
#   1. RPC get_upcoming_lessons / get_past_lessons
#   2. fallback: bookings joined to lessons(title), filtered by role and time
#   3. participant names: helper RPC -> *_profiles view -> base tables
#
# Whatever path produced the rows, lessons are re-classified and sorted
# here: upcoming = starts after now or falls on today's (UTC) date,
# past = everything else. Upcoming sorts ascending by (date, start time),
# past descending.
#
# Write path (raises TutorHubException subclasses):
#   confirm / complete (teacher only) and cancel (either participant)
# =============================================================================

import logging
import math
from datetime import datetime, time, timezone
from typing import Any, Callable, Iterable
from uuid import UUID

from supabase import Client

from app.exceptions import (
    DatabaseWriteError,
    InvalidLessonTransitionError,
    LessonNotFoundError,
    LessonPermissionError,
)
from core.mappers import booking_row_to_lesson_row, map_lesson, map_profile_row
from core.models.lesson import Lesson, LessonAction, LessonStats, LessonStatus, UserRole
from lib.fallback import EmptyResult, FallbackChain
from lib.supabase_client import error_code
from lib.utils import normalize_uuid, utc_now

logger = logging.getLogger(__name__)

BOOKING_LESSON_COLUMNS = (
    "id, lessons(title), start_time_utc, end_time_utc, status, "
    "teacher_id, student_id, created_at"
)

ACTIVE_STATUSES = [LessonStatus.PENDING.value, LessonStatus.CONFIRMED.value]

# action -> (allowed current statuses, new status, teacher only)
LESSON_TRANSITIONS: dict[LessonAction, tuple[frozenset[LessonStatus], LessonStatus, bool]] = {
    LessonAction.CONFIRM: (
        frozenset({LessonStatus.PENDING}),
        LessonStatus.CONFIRMED,
        True,
    ),
    LessonAction.COMPLETE: (
        frozenset({LessonStatus.CONFIRMED}),
        LessonStatus.COMPLETED,
        True,
    ),
    LessonAction.CANCEL: (
        frozenset({LessonStatus.PENDING, LessonStatus.CONFIRMED, LessonStatus.RESCHEDULED}),
        LessonStatus.CANCELLED,
        False,
    ),
}


# =============================================================================
# Classification & ordering
# =============================================================================

def start_of_day(moment: datetime) -> datetime:
    """Midnight (UTC) of the day containing `moment`."""
    moment = moment.astimezone(timezone.utc)
    return datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)


def is_upcoming(lesson: Lesson, now: datetime) -> bool:
    """
    True when the lesson starts after `now` or is on today's UTC date.

    Lessons whose start cannot be parsed are classified by date alone.
    """
    today = now.astimezone(timezone.utc).date().isoformat()
    if lesson.date == today:
        return True

    try:
        start = datetime.fromisoformat(f"{lesson.date}T{lesson.start_time or '00:00'}:00+00:00")
    except ValueError:
        return lesson.date > today
    return start > now


def sort_lessons(lessons: Iterable[Lesson], upcoming: bool) -> list[Lesson]:
    """Order by (date, HH:MM start) - ascending for upcoming, descending for past."""
    return sorted(lessons, key=lambda lesson: (lesson.date, lesson.start_time), reverse=not upcoming)


def _unique(values: Iterable[Any]) -> list[str]:
    """Distinct non-empty values, first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(str(value), None)
    return list(seen)


class LessonService:
    """
    Service for lesson reads and status changes.

    Args:
        client: Supabase client handle
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(self, client: Client, clock: Callable[[], datetime] = utc_now):
        self.client = client
        self.clock = clock

    # -------------------------------------------------------------------------
    # Lesson lists
    # -------------------------------------------------------------------------

    def get_upcoming_lessons(self, user_id: str | UUID, role: UserRole | str) -> list[Lesson]:
        """
        Lessons that start later than now or fall on today's date.

        Returns:
            Lessons sorted by date then start time ascending; [] on failure
        """
        return self._fetch_lessons(user_id, UserRole(role), upcoming=True)

    def get_past_lessons(self, user_id: str | UUID, role: UserRole | str) -> list[Lesson]:
        """
        Lessons from before today.

        Returns:
            Lessons sorted by date then start time descending; [] on failure
        """
        return self._fetch_lessons(user_id, UserRole(role), upcoming=False)

    def _fetch_lessons(self, user_id: str | UUID, role: UserRole, upcoming: bool) -> list[Lesson]:
        user_id_str = normalize_uuid(user_id)
        kind = "upcoming" if upcoming else "past"

        try:
            now = self.clock()

            chain: FallbackChain[list[dict[str, Any]]] = FallbackChain(f"{kind}_lessons", default=[])
            chain.add("rpc", lambda: self._lessons_via_rpc(f"get_{kind}_lessons", user_id_str, role))
            chain.add("bookings_query", lambda: self._lessons_via_bookings(user_id_str, role, upcoming, now))
            rows = chain.run().value

            lessons = [
                lesson for lesson in self._attach_profiles(rows)
                if is_upcoming(lesson, now) == upcoming
            ]
            logger.debug(f"Fetched {len(lessons)} {kind} lessons for {role.value} {user_id_str}")
            return sort_lessons(lessons, upcoming)

        except Exception as e:
            logger.exception(f"Unexpected error fetching {kind} lessons for {user_id_str}: {e}")
            return []

    def _lessons_via_rpc(self, rpc_name: str, user_id: str, role: UserRole) -> list[dict[str, Any]]:
        response = self.client.rpc(rpc_name, {"user_id": user_id, "role": role.value}).execute()
        data = response.data
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    def _lessons_via_bookings(
        self,
        user_id: str,
        role: UserRole,
        upcoming: bool,
        now: datetime,
    ) -> list[dict[str, Any]]:
        boundary = start_of_day(now).isoformat()

        query = (
            self.client.table("bookings")
            .select(BOOKING_LESSON_COLUMNS)
            .eq(role.id_column, user_id)
        )
        if upcoming:
            query = query.gte("start_time_utc", boundary).order("start_time_utc", desc=False)
        else:
            query = query.lt("start_time_utc", boundary).order("start_time_utc", desc=True)

        response = query.execute()
        return [booking_row_to_lesson_row(row) for row in (response.data or [])]

    # -------------------------------------------------------------------------
    # Participant display info
    # -------------------------------------------------------------------------

    def _attach_profiles(self, rows: list[dict[str, Any]]) -> list[Lesson]:
        teachers = self.fetch_profiles("teacher", _unique(row.get("teacher_id") for row in rows))
        students = self.fetch_profiles("student", _unique(row.get("student_id") for row in rows))

        return [
            map_lesson(row, teachers.get(str(row.get("teacher_id"))), students.get(str(row.get("student_id"))))
            for row in rows
        ]

    def fetch_profiles(self, kind: str, ids: list[str]) -> dict[str, dict[str, Any]]:
        """
        Resolve display name and avatar for teachers or students.

        Tries the get_{kind}_profile_info RPC, then the {kind}_profiles
        view, then the {kind}s base table (first + last name).

        Args:
            kind: "teacher" or "student"
            ids: Profile ids to look up (batched into one query)

        Returns:
            Mapping of id -> {"id", "full_name", "avatar_url"}; {} on failure
        """
        if not ids:
            return {}

        def index(rows: list[dict[str, Any]] | None) -> dict[str, dict[str, Any]]:
            profiles = (map_profile_row(row) for row in (rows or []))
            return {str(p["id"]): p for p in profiles if p["id"] is not None}

        chain: FallbackChain[dict[str, dict[str, Any]]] = FallbackChain(f"{kind}_profiles", default={})
        chain.add(
            "helper_rpc",
            lambda: index(self.client.rpc(f"get_{kind}_profile_info", {f"{kind}_ids": ids}).execute().data),
        )
        chain.add(
            "profile_view",
            lambda: index(
                self.client.table(f"{kind}_profiles")
                .select("id, full_name, avatar_url")
                .in_("id", ids)
                .execute()
                .data
            ),
        )
        chain.add(
            "base_table",
            lambda: index(
                self.client.table(f"{kind}s")
                .select("id, first_name, last_name, profile_picture_url")
                .in_("id", ids)
                .execute()
                .data
            ),
        )
        return chain.run().value

    # -------------------------------------------------------------------------
    # Single lessons
    # -------------------------------------------------------------------------

    def get_lesson(self, lesson_id: str | UUID) -> Lesson | None:
        """Fetch one lesson with participant info; None if missing or on failure."""
        try:
            row = self._fetch_booking(normalize_uuid(lesson_id))
        except Exception as e:
            logger.error(f"Failed to fetch lesson {lesson_id}: {e}")
            return None
        if row is None:
            return None
        return self._attach_profiles([booking_row_to_lesson_row(row)])[0]

    def get_lessons_starting_between(self, start: datetime, end: datetime) -> list[Lesson]:
        """
        Confirmed lessons (all users) whose start falls in [start, end).

        Used by the reminder task. Returns [] on failure.
        """
        try:
            response = (
                self.client.table("bookings")
                .select(BOOKING_LESSON_COLUMNS)
                .eq("status", LessonStatus.CONFIRMED.value)
                .gte("start_time_utc", start.isoformat())
                .lt("start_time_utc", end.isoformat())
                .order("start_time_utc", desc=False)
                .execute()
            )
            rows = [booking_row_to_lesson_row(row) for row in (response.data or [])]
            return self._attach_profiles(rows)
        except Exception as e:
            logger.error(f"Failed to fetch lessons between {start} and {end}: {e}")
            return []

    def _fetch_booking(self, lesson_id: str) -> dict[str, Any] | None:
        response = (
            self.client.table("bookings")
            .select("*")
            .eq("id", lesson_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_lesson_stats(self, user_id: str | UUID, role: UserRole | str) -> LessonStats:
        """
        Dashboard counters for a user.

        Tries the get_lesson_stats RPC, then four direct queries.

        Returns:
            LessonStats; all zeros on failure
        """
        user_id_str = normalize_uuid(user_id)
        role = UserRole(role)

        try:
            chain: FallbackChain[LessonStats] = FallbackChain("lesson_stats", default=LessonStats())
            chain.add("rpc", lambda: self._stats_via_rpc(user_id_str, role))
            chain.add("direct_queries", lambda: self._stats_via_queries(user_id_str, role))
            return chain.run().value
        except Exception as e:
            logger.exception(f"Unexpected error computing lesson stats for {user_id_str}: {e}")
            return LessonStats()

    def _stats_via_rpc(self, user_id: str, role: UserRole) -> LessonStats:
        data = self.client.rpc("get_lesson_stats", {"user_id": user_id, "role": role.value}).execute().data
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise EmptyResult("get_lesson_stats returned no row")
        return LessonStats.model_validate({key: value for key, value in data.items() if value is not None})

    def _stats_via_queries(self, user_id: str, role: UserRole) -> LessonStats:
        boundary = start_of_day(self.clock()).isoformat()
        bookings = lambda *columns, **kwargs: self.client.table("bookings").select(*columns, **kwargs)

        upcoming = (
            bookings("id", count="exact", head=True)
            .eq(role.id_column, user_id)
            .gte("start_time_utc", boundary)
            .in_("status", ACTIVE_STATUSES)
            .execute()
        )
        completed = (
            bookings("id", count="exact", head=True)
            .eq(role.id_column, user_id)
            .eq("status", LessonStatus.COMPLETED.value)
            .execute()
        )
        counterparts = (
            bookings(role.counterpart_column)
            .eq(role.id_column, user_id)
            .execute()
        )
        durations = (
            bookings("lessons(duration_minutes)")
            .eq(role.id_column, user_id)
            .eq("status", LessonStatus.COMPLETED.value)
            .execute()
        )

        total_minutes = 0
        for row in durations.data or []:
            lesson = row.get("lessons") or {}
            total_minutes += (lesson.get("duration_minutes") or 0) if isinstance(lesson, dict) else 0

        return LessonStats(
            upcoming_lessons=upcoming.count or 0,
            completed_lessons=completed.count or 0,
            unique_connections=len(_unique(row.get(role.counterpart_column) for row in counterparts.data or [])),
            total_hours=math.floor(total_minutes / 60 + 0.5),
        )

    # -------------------------------------------------------------------------
    # Status changes (write path)
    # -------------------------------------------------------------------------

    def update_lesson_status(
        self,
        lesson_id: str | UUID,
        action: LessonAction | str,
        actor_id: str | UUID,
    ) -> Lesson:
        """
        Confirm, complete or cancel a lesson.

        Args:
            lesson_id: Booking id
            action: confirm / complete (teacher only) or cancel (either side)
            actor_id: User performing the action

        Returns:
            The updated lesson

        Raises:
            LessonNotFoundError: If the booking doesn't exist
            LessonPermissionError: If the actor may not perform the action
            InvalidLessonTransitionError: If the current status forbids it
            DatabaseWriteError: If the read or update fails
        """
        action = LessonAction(action)
        lesson_id_str = normalize_uuid(lesson_id)
        actor = normalize_uuid(actor_id)

        try:
            booking = self._fetch_booking(lesson_id_str)
        except Exception as e:
            raise DatabaseWriteError(f"load lesson {lesson_id_str}", str(e), error_code(e))

        if booking is None:
            raise LessonNotFoundError(lesson_id_str)

        allowed_from, new_status, teacher_only = LESSON_TRANSITIONS[action]
        participants = {str(booking.get("teacher_id"))}
        if not teacher_only:
            participants.add(str(booking.get("student_id")))
        if str(actor) not in participants:
            raise LessonPermissionError(lesson_id_str, action.value)

        current = str(booking.get("status"))
        if current not in {status.value for status in allowed_from}:
            raise InvalidLessonTransitionError(lesson_id_str, action.value, current)

        try:
            response = (
                self.client.table("bookings")
                .update({"status": new_status.value})
                .eq("id", lesson_id_str)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to {action.value} lesson {lesson_id_str}: {e}")
            raise DatabaseWriteError(f"{action.value} lesson", str(e), error_code(e))

        updated = (response.data or [None])[0] or {**booking, "status": new_status.value}
        logger.info(f"Lesson {lesson_id_str} {current} -> {new_status.value} by {actor}")
        return self._attach_profiles([booking_row_to_lesson_row(updated)])[0]

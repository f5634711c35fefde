# =============================================================================
# core/services/teacher_service.py - Teacher Profiles, Ratings, Availability
# =============================================================================
# - Profiles live in `teachers` (id = auth user id). A signed-in teacher
#   without a row gets a minimal one created on first read.
# - Saving a profile first makes sure the user has the teacher role
#   (ensure_teacher_profile RPC -> manage_user_role RPC -> users upsert).
# - Availability is stored in teachers.availability (JSON, camelCase keys)
#   or, on databases without that column, in `teacher_availability`.
# =============================================================================

import logging
import math
from datetime import datetime
from typing import Any, Callable, Mapping
from uuid import UUID

from supabase import Client

from app.exceptions import DatabaseWriteError
from core.mappers import map_teacher
from core.models.teacher import Teacher, TeacherAvailability, TeacherProfileUpdate, TeacherRating
from lib.fallback import EmptyResult, FallbackChain
from lib.supabase_client import error_code, is_no_rows
from lib.utils import ensure_list, normalize_uuid, utc_now

logger = logging.getLogger(__name__)

TEACHER_ROLE = "teacher"

PROFILE_COLUMNS = (
    "id, first_name, last_name, profile_picture_url, intro_video_url, bio, "
    "qualifications, experience, time_zone, is_verified, average_rating, "
    "contact_number, created_at, updated_at"
)


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split "Ada King Lovelace" into ("Ada", "King Lovelace"); blanks get placeholders."""
    parts = full_name.split()
    return (parts[0] if parts else "Teacher", " ".join(parts[1:]) or "User")


class TeacherService:
    """
    Service for teacher profile operations.

    Args:
        client: Supabase client handle
        clock: Returns the current UTC time (updated_at)
    """

    def __init__(self, client: Client, clock: Callable[[], datetime] = utc_now):
        self.client = client
        self.clock = clock

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    def get_teacher_profile(
        self,
        user_id: str | UUID,
        metadata: Mapping[str, Any] | None = None,
        create_missing: bool = True,
    ) -> Teacher | None:
        """
        Fetch a teacher profile, creating a minimal one if it is missing.

        Args:
            user_id: Teacher (auth user) id
            metadata: Auth user metadata used to name a newly created
                profile (first_name, last_name, avatar_url)
            create_missing: Create a minimal profile when none exists

        Returns:
            The profile, or None on failure
        """
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                self.client.table("teachers")
                .select(PROFILE_COLUMNS)
                .eq("id", user_id_str)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            if rows:
                return map_teacher(rows[0])
            if not create_missing:
                return None

            return self._create_minimal_profile(user_id_str, metadata or {})

        except Exception as e:
            logger.error(f"Failed to fetch teacher profile {user_id_str}: {e}")
            return None

    def _create_minimal_profile(self, user_id: str, metadata: Mapping[str, Any]) -> Teacher | None:
        first_name = metadata.get("first_name") or "New"
        last_name = metadata.get("last_name") or "Teacher"

        self._ensure_teacher_role(user_id)

        try:
            self.client.table("teachers").insert(
                {"id": user_id, "first_name": first_name, "last_name": last_name}
            ).execute()
        except Exception as e:
            logger.error(f"Failed to create teacher profile {user_id}: {e}")
            return None

        now = self.clock().isoformat()
        logger.info(f"Created minimal teacher profile for {user_id}")
        return map_teacher({
            "id": user_id,
            "first_name": first_name,
            "last_name": last_name,
            "profile_picture_url": metadata.get("avatar_url"),
            "bio": "",
            "experience": "",
            "time_zone": "",
            "created_at": now,
            "updated_at": now,
        })

    def update_teacher_profile(self, user_id: str | UUID, update: TeacherProfileUpdate) -> Teacher:
        """
        Create or update a teacher profile with the fields that were set.

        Returns:
            The saved profile

        Raises:
            DatabaseWriteError: If the teachers upsert fails
        """
        user_id_str = normalize_uuid(user_id)

        data = update.model_dump(exclude_unset=True, exclude={"full_name"})
        if update.full_name is not None and (update.first_name is None or update.last_name is None):
            data["first_name"], data["last_name"] = split_full_name(update.full_name)

        if not self._ensure_profile_rpc(user_id_str, data):
            self._ensure_teacher_role(user_id_str)

        data["updated_at"] = self.clock().isoformat()

        try:
            response = (
                self.client.table("teachers")
                .upsert({"id": user_id_str, **data}, on_conflict="id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to save teacher profile {user_id_str}: {e}")
            raise DatabaseWriteError("save teacher profile", str(e), error_code(e))

        rows = response.data or [{"id": user_id_str, **data}]
        logger.info(f"Saved teacher profile {user_id_str} ({', '.join(sorted(data))})")
        return map_teacher(rows[0])

    def _ensure_profile_rpc(self, user_id: str, data: Mapping[str, Any]) -> bool:
        try:
            self.client.rpc(
                "ensure_teacher_profile",
                {"user_id": user_id, "first_name": data.get("first_name"), "last_name": data.get("last_name")},
            ).execute()
            return True
        except Exception as e:
            logger.warning(f"ensure_teacher_profile RPC failed for {user_id}: {e}")
            return False

    def _ensure_teacher_role(self, user_id: str) -> bool:
        """Give the user the teacher role; failures are logged, not raised."""
        try:
            response = self.client.table("users").select("role").eq("id", user_id).limit(1).execute()
            rows = response.data or []
            if rows and rows[0].get("role") == TEACHER_ROLE:
                return True
        except Exception as e:
            if not is_no_rows(e):
                logger.warning(f"Could not read role of user {user_id}: {e}")

        chain: FallbackChain[bool] = FallbackChain("teacher_role", default=False)
        chain.add("manage_user_role_rpc", lambda: self._set_role_via_rpc(user_id))
        chain.add("users_upsert", lambda: self._set_role_directly(user_id))
        return chain.run().value

    def _set_role_via_rpc(self, user_id: str) -> bool:
        self.client.rpc("manage_user_role", {"user_id": user_id, "new_role": TEACHER_ROLE}).execute()
        return True

    def _set_role_directly(self, user_id: str) -> bool:
        self.client.table("users").upsert({"id": user_id, "role": TEACHER_ROLE}, on_conflict="id").execute()
        return True

    # -------------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------------

    def get_teacher_rating(self, teacher_id: str | UUID) -> TeacherRating:
        """Average review rating rounded to one decimal; zeros on failure."""
        teacher_id_str = normalize_uuid(teacher_id)
        try:
            response = self.client.table("reviews").select("rating").eq("teacher_id", teacher_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to fetch ratings for teacher {teacher_id_str}: {e}")
            return TeacherRating()

        ratings = [row["rating"] for row in (response.data or []) if row.get("rating") is not None]
        if not ratings:
            return TeacherRating()

        average = sum(ratings) / len(ratings)
        return TeacherRating(average=math.floor(average * 10 + 0.5) / 10, count=len(ratings))

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def get_availability(self, teacher_id: str | UUID) -> TeacherAvailability:
        """
        Weekly slots, specific dates and breaks for a teacher.

        Returns:
            Stored availability; empty lists when none is stored or on failure
        """
        teacher_id_str = normalize_uuid(teacher_id)

        chain: FallbackChain[TeacherAvailability] = FallbackChain("teacher_availability", default=TeacherAvailability())
        chain.add("teachers_column", lambda: self._availability_from_teachers(teacher_id_str))
        chain.add("availability_table", lambda: self._availability_from_table(teacher_id_str))
        return chain.run().value

    def _availability_from_teachers(self, teacher_id: str) -> TeacherAvailability:
        rows = (
            self.client.table("teachers").select("availability").eq("id", teacher_id).limit(1).execute()
        ).data or []
        stored = rows[0].get("availability") if rows else None
        if not stored:
            raise EmptyResult(f"no availability on teachers row {teacher_id}")
        return TeacherAvailability.model_validate({
            "recurring_slots": ensure_list(stored.get("recurringSlots", stored.get("recurring_slots"))),
            "specific_dates": ensure_list(stored.get("specificDates", stored.get("specific_dates"))),
            "break_periods": ensure_list(stored.get("breakPeriods", stored.get("break_periods"))),
        })

    def _availability_from_table(self, teacher_id: str) -> TeacherAvailability:
        rows = (
            self.client.table("teacher_availability")
            .select("recurring_slots, specific_dates, break_periods")
            .eq("teacher_id", teacher_id)
            .limit(1)
            .execute()
        ).data or []
        if not rows:
            raise EmptyResult(f"no teacher_availability row for {teacher_id}")
        row = rows[0]
        return TeacherAvailability(
            recurring_slots=ensure_list(row.get("recurring_slots")),
            specific_dates=ensure_list(row.get("specific_dates")),
            break_periods=ensure_list(row.get("break_periods")),
        )

    def save_availability(self, teacher_id: str | UUID, availability: TeacherAvailability) -> str:
        """
        Store availability on the teachers row, else in teacher_availability.

        Returns:
            Name of the table the availability was written to

        Raises:
            DatabaseWriteError: If neither location accepts the write
        """
        teacher_id_str = normalize_uuid(teacher_id)
        now = self.clock().isoformat()

        try:
            response = (
                self.client.table("teachers")
                .update({"availability": availability.model_dump(by_alias=True), "updated_at": now})
                .eq("id", teacher_id_str)
                .execute()
            )
            if response.data:
                logger.info(f"Saved availability for {teacher_id_str} to teachers")
                return "teachers"
            logger.info(f"No teachers row for {teacher_id_str}, saving to teacher_availability")
        except Exception as e:
            logger.warning(f"Could not save availability to teachers for {teacher_id_str}: {e}")

        try:
            self.client.table("teacher_availability").upsert(
                {
                    "teacher_id": teacher_id_str,
                    "recurring_slots": availability.recurring_slots,
                    "specific_dates": availability.specific_dates,
                    "break_periods": availability.break_periods,
                    "updated_at": now,
                },
                on_conflict="teacher_id",
            ).execute()
        except Exception as e:
            logger.error(f"Failed to save availability for {teacher_id_str}: {e}")
            raise DatabaseWriteError("save availability", str(e), error_code(e))

        logger.info(f"Saved availability for {teacher_id_str} to teacher_availability")
        return "teacher_availability"

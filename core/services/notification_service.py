# =============================================================================
# core/services/notification_service.py - Notification Business Logic
# =============================================================================
# The notifications table exists in two layouts:
# - new:    title, related_id
# - legacy: no title, related_entity_id
#
# Reads resolve the layout with SchemaResolver before selecting; if the
# select still hits an undefined column (layout changed between probe and
# read), a minimal column list is used instead. Reads never raise.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from app.exceptions import DatabaseWriteError
from core.mappers import map_notification
from core.models.notification import Notification, NotificationType
from lib.schema import AccessPlan, ColumnProber, SchemaResolver
from lib.supabase_client import error_code, is_undefined_column
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

TABLE = "notifications"

BASE_COLUMNS = ["id", "user_id", "message", "type", "is_read", "created_at"]

OPTIONAL_FIELDS = {
    "title": ["title"],
    "related_id": ["related_id", "related_entity_id"],
}


class NotificationService:
    """
    Service for notification operations.

    Args:
        client: Supabase client handle
        resolver: Schema resolver (defaults to an uncached one over `client`)
    """

    def __init__(self, client: Client, resolver: SchemaResolver | None = None):
        self.client = client
        self.resolver = resolver or SchemaResolver(ColumnProber(client))

    def _resolve_layout(self) -> AccessPlan:
        return self.resolver.resolve(TABLE, OPTIONAL_FIELDS)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_user_notifications(self, user_id: str | UUID) -> list[Notification]:
        """
        Get a user's notifications, newest first.

        Returns:
            List of notifications; [] when the table is missing or on failure
        """
        user_id_str = normalize_uuid(user_id)

        try:
            if not self.resolver.prober.table_exists(TABLE):
                return []

            columns = self._resolve_layout().select_clause(BASE_COLUMNS)
            try:
                rows = self._select(columns, user_id_str)
            except Exception as e:
                if not is_undefined_column(e):
                    raise
                logger.warning(f"Notification select hit a missing column ({e}), retrying with minimal columns")
                rows = self._select(", ".join(BASE_COLUMNS), user_id_str)

            return [map_notification(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to fetch notifications for {user_id_str}: {e}")
            return []

    def _select(self, columns: str, user_id: str) -> list[dict[str, Any]]:
        response = (
            self.client.table(TABLE)
            .select(columns)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    def get_unread_count(self, user_id: str | UUID) -> int:
        """Number of unread notifications; 0 on failure."""
        user_id_str = normalize_uuid(user_id)
        try:
            response = (
                self.client.table(TABLE)
                .select("id", count="exact", head=True)
                .eq("user_id", user_id_str)
                .eq("is_read", False)
                .execute()
            )
            return response.count or 0
        except Exception as e:
            logger.error(f"Failed to count unread notifications for {user_id_str}: {e}")
            return 0

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def mark_as_read(self, notification_id: str | UUID, user_id: str | UUID | None = None) -> bool:
        """
        Mark a notification as read.

        Args:
            notification_id: Notification to update
            user_id: When given, only the owner's notification is updated

        Returns:
            True if a row was updated, False if none matched

        Raises:
            DatabaseWriteError: If the update fails
        """
        notification_id_str = normalize_uuid(notification_id)
        query = self.client.table(TABLE).update({"is_read": True}).eq("id", notification_id_str)
        if user_id is not None:
            query = query.eq("user_id", normalize_uuid(user_id))

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Failed to mark notification {notification_id_str} as read: {e}")
            raise DatabaseWriteError("mark notification as read", str(e), error_code(e))

        return bool(response.data)

    def create_notification(
        self,
        user_id: str | UUID,
        title: str,
        message: str,
        type: NotificationType | str = NotificationType.SYSTEM,
        related_id: str | UUID | None = None,
    ) -> str | None:
        """
        Insert a notification using whichever columns the table has.

        `title` is only written when the column exists; `related_id` goes to
        related_id or related_entity_id, whichever exists.

        Returns:
            ID of the new notification (None if the insert returned no row)

        Raises:
            DatabaseWriteError: If probing or the insert fails
        """
        try:
            plan = self._resolve_layout()
        except Exception as e:
            raise DatabaseWriteError("create notification", str(e), error_code(e))

        data: dict[str, Any] = {
            "user_id": normalize_uuid(user_id),
            "message": message,
            "type": NotificationType(type).value,
            "is_read": False,
        }
        if plan.has("title"):
            data["title"] = title
        if related_id is not None and plan.has("related_id"):
            data[plan.column("related_id")] = normalize_uuid(related_id)

        try:
            response = self.client.table(TABLE).insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create notification for {data['user_id']}: {e}")
            raise DatabaseWriteError("create notification", str(e), error_code(e))

        rows = response.data or []
        notification_id = rows[0].get("id") if rows else None
        logger.info(f"Created {data['type']} notification {notification_id} for {data['user_id']}")
        return notification_id

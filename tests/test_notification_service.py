# =============================================================================
# tests/test_notification_service.py - Notification Service Tests
# =============================================================================
# Both notification layouts are exercised:
# - current: title + related_id
# - legacy:  no title, related_entity_id
# =============================================================================

import pytest

from app.exceptions import DatabaseWriteError
from core.models.notification import NotificationType
from core.services.notification_service import NotificationService
from lib.schema import ColumnProber, SchemaResolver
from tests.fakes import FakeSupabase, api_error

USER_ID = "u-1"

CURRENT_COLUMNS = ["id", "user_id", "title", "message", "type", "is_read", "created_at", "related_id"]
LEGACY_COLUMNS = ["id", "user_id", "message", "type", "is_read", "created_at", "related_entity_id"]


@pytest.fixture
def current_db():
    return FakeSupabase(
        tables={"notifications": [
            {"id": "n1", "user_id": USER_ID, "title": "Lesson reminder", "message": "Tomorrow at 14:00",
             "type": "lesson_reminder", "is_read": False, "created_at": "2026-10-18T10:00:00+00:00", "related_id": "b1"},
            {"id": "n2", "user_id": USER_ID, "title": "Welcome", "message": "Hello",
             "type": "system", "is_read": True, "created_at": "2026-10-19T09:00:00+00:00", "related_id": None},
            {"id": "n3", "user_id": "someone-else", "title": "Other", "message": "",
             "type": "system", "is_read": False, "created_at": "2026-10-19T09:30:00+00:00", "related_id": None},
        ]},
        schema={"notifications": CURRENT_COLUMNS},
    )


@pytest.fixture
def legacy_db():
    return FakeSupabase(
        tables={"notifications": [
            {"id": "n1", "user_id": USER_ID, "message": "New booking", "type": "new_booking",
             "is_read": False, "created_at": "2026-10-18T10:00:00+00:00", "related_entity_id": "b9"},
        ]},
        schema={"notifications": LEGACY_COLUMNS},
    )


# =============================================================================
# Reads
# =============================================================================

class TestGetUserNotifications:
    """Tests for get_user_notifications."""

    def test_current_layout_newest_first(self, current_db):
        notifications = NotificationService(current_db).get_user_notifications(USER_ID)

        assert [n.id for n in notifications] == ["n2", "n1"]
        assert notifications[1].title == "Lesson reminder"
        assert notifications[1].related_id == "b1"

    def test_legacy_layout(self, legacy_db):
        """Missing title defaults; related_entity_id becomes relatedId."""
        notifications = NotificationService(legacy_db).get_user_notifications(USER_ID)

        assert len(notifications) == 1
        assert notifications[0].title == "Notification"
        assert notifications[0].related_id == "b9"
        assert notifications[0].type is NotificationType.BOOKING_CONFIRMATION

    def test_select_uses_resolved_columns(self, legacy_db):
        NotificationService(legacy_db).get_user_notifications(USER_ID)

        selects = [c.payload for c in legacy_db.calls_to("notifications", "select")]
        assert selects[-1] == "id, user_id, message, type, is_read, created_at, related_entity_id"

    def test_retry_with_minimal_columns(self, current_db):
        """A column dropped between probe and read triggers one minimal retry."""
        stale = SchemaResolver(ColumnProber(current_db, cache_ttl=600))
        service = NotificationService(current_db, stale)
        service.get_user_notifications(USER_ID)

        current_db.schema["notifications"] = [c for c in CURRENT_COLUMNS if c != "related_id"]
        notifications = service.get_user_notifications(USER_ID)

        assert [n.id for n in notifications] == ["n2", "n1"]
        assert notifications[1].related_id is None

    def test_missing_table(self):
        assert NotificationService(FakeSupabase()).get_user_notifications(USER_ID) == []

    def test_outage_returns_empty(self, current_db):
        current_db.fail("notifications", api_error("57014", "timeout"))
        assert NotificationService(current_db).get_user_notifications(USER_ID) == []


class TestUnreadCount:
    def test_counts_only_unread_for_user(self, current_db):
        assert NotificationService(current_db).get_unread_count(USER_ID) == 1

    def test_failure_is_zero(self):
        assert NotificationService(FakeSupabase()).get_unread_count(USER_ID) == 0


# =============================================================================
# Writes
# =============================================================================

class TestMarkAsRead:
    """Tests for mark_as_read."""

    def test_marks_row(self, current_db):
        assert NotificationService(current_db).mark_as_read("n1", user_id=USER_ID) is True
        assert current_db.tables["notifications"][0]["is_read"] is True

    def test_other_users_notification(self, current_db):
        """Owner filter: no row matches, nothing changes."""
        assert NotificationService(current_db).mark_as_read("n3", user_id=USER_ID) is False
        assert current_db.tables["notifications"][2]["is_read"] is False

    def test_unknown_id(self, current_db):
        assert NotificationService(current_db).mark_as_read("missing") is False

    def test_failure_raises(self, current_db):
        current_db.fail("notifications", api_error("42501", "permission denied"), operation="update")

        with pytest.raises(DatabaseWriteError):
            NotificationService(current_db).mark_as_read("n1")


class TestCreateNotification:
    """Tests for create_notification."""

    def test_current_layout(self, current_db):
        new_id = NotificationService(current_db).create_notification(
            USER_ID, "Lesson reminder", "Soon", NotificationType.LESSON_REMINDER, related_id="b1",
        )

        row = current_db.tables["notifications"][-1]
        assert row["id"] == new_id
        assert row["title"] == "Lesson reminder"
        assert row["related_id"] == "b1"
        assert row["type"] == "lesson_reminder"
        assert row["is_read"] is False

    def test_legacy_layout(self, legacy_db):
        """No title column; related id goes to related_entity_id."""
        NotificationService(legacy_db).create_notification(USER_ID, "Ignored", "Hi", "system", related_id="b2")

        row = legacy_db.tables["notifications"][-1]
        assert "title" not in row
        assert row["related_entity_id"] == "b2"

    def test_invalid_type(self, current_db):
        with pytest.raises(ValueError):
            NotificationService(current_db).create_notification(USER_ID, "t", "m", type="promo")

    def test_insert_failure_raises(self, current_db):
        current_db.fail("notifications", api_error("23503", "foreign key violation"), operation="insert")

        with pytest.raises(DatabaseWriteError) as exc_info:
            NotificationService(current_db).create_notification(USER_ID, "t", "m")
        assert exc_info.value.details["db_code"] == "23503"

    def test_probe_failure_raises(self):
        db = FakeSupabase(tables={"notifications": []})
        db.fail("notifications", api_error("42501", "permission denied"))

        with pytest.raises(DatabaseWriteError):
            NotificationService(db).create_notification(USER_ID, "t", "m")

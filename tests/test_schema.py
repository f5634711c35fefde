# =============================================================================
# tests/test_schema.py - Column Prober & Schema Resolver Tests
# =============================================================================
# Only "undefined column" / "undefined table" errors may be reported as a
# missing object. Timeouts, auth and permission failures must surface as
# SchemaProbeError instead of masquerading as schema drift.
#
# Run with: pytest tests/test_schema.py -v
# =============================================================================

from unittest.mock import MagicMock

import httpx
import pytest

from lib.schema import AccessPlan, ColumnProber, SchemaProbeError, SchemaResolver
from tests.fakes import FakeSupabase, api_error


@pytest.fixture
def notifications_db():
    """Legacy notifications layout: no title, related_entity_id."""
    return FakeSupabase(
        tables={"notifications": []},
        schema={"notifications": ["id", "user_id", "message", "type", "is_read", "created_at", "related_entity_id"]},
    )


# =============================================================================
# ColumnProber
# =============================================================================

class TestColumnExists:
    """Tests for ColumnProber.column_exists."""

    def test_existing_column(self, notifications_db):
        """A column that can be selected exists."""
        prober = ColumnProber(notifications_db)
        assert prober.column_exists("notifications", "message") is True

    def test_missing_column(self, notifications_db):
        """An undefined-column error means the column is missing."""
        prober = ColumnProber(notifications_db)
        assert prober.column_exists("notifications", "title") is False

    def test_schema_cache_code_counts_as_missing(self):
        """PGRST204 (PostgREST schema cache) is also an undefined column."""
        db = FakeSupabase(tables={"notifications": []})
        db.fail("notifications", api_error("PGRST204", "Could not find the 'title' column"))

        assert ColumnProber(db).column_exists("notifications", "title") is False

    @pytest.mark.parametrize("error", [
        api_error("42501", "permission denied for table notifications"),
        api_error("57014", "canceling statement due to statement timeout"),
        httpx.ReadTimeout("timed out"),
        ConnectionError("connection reset"),
    ])
    def test_other_errors_are_not_missing(self, error):
        """Any other failure raises instead of returning False."""
        db = FakeSupabase(tables={"notifications": []})
        db.fail("notifications", error)

        with pytest.raises(SchemaProbeError) as exc_info:
            ColumnProber(db).column_exists("notifications", "title")

        assert exc_info.value.code == "SCHEMA_PROBE_FAILED"
        assert exc_info.value.details["column"] == "title"

    def test_missing_table_is_not_a_missing_column(self):
        """Probing a column of a missing table is a probe failure."""
        with pytest.raises(SchemaProbeError) as exc_info:
            ColumnProber(FakeSupabase()).column_exists("notifications", "title")

        assert exc_info.value.details["db_code"] == "42P01"


class TestTableExists:
    """Tests for ColumnProber.table_exists."""

    def test_existing_table(self, notifications_db):
        assert ColumnProber(notifications_db).table_exists("notifications") is True

    def test_missing_table(self):
        """42P01 means the table is missing."""
        assert ColumnProber(FakeSupabase()).table_exists("booking_requests") is False

    def test_timeout_raises(self):
        """A timeout is not reported as a missing table."""
        db = FakeSupabase(tables={"bookings": []})
        db.fail("bookings", httpx.ConnectTimeout("timed out"))

        with pytest.raises(SchemaProbeError):
            ColumnProber(db).table_exists("bookings")


class TestListColumns:
    """Tests for ColumnProber.list_columns."""

    def test_columns_from_sample_row(self):
        """Keys of the first row are the column names."""
        db = FakeSupabase(tables={"reviews": [{"teacher_id": "t1", "rating": 5}]})
        assert ColumnProber(db).list_columns("reviews") == ["teacher_id", "rating"]

    def test_empty_table_uses_rpc(self):
        """An empty table falls back to get_table_columns."""
        db = FakeSupabase(
            tables={"reviews": []},
            rpcs={"get_table_columns": [{"column_name": "teacher_id"}, {"column_name": "rating"}]},
        )
        assert ColumnProber(db).list_columns("reviews") == ["teacher_id", "rating"]
        assert db.calls_to("get_table_columns")[0].payload == {"table_name": "reviews"}

    def test_empty_table_without_rpc(self):
        """No rows and no RPC gives an empty list."""
        db = FakeSupabase(tables={"reviews": []})
        assert ColumnProber(db).list_columns("reviews") == []


class TestProbeCache:
    """Tests for the optional probe cache."""

    def test_no_cache_by_default(self, notifications_db):
        """Every probe is a fresh round trip when cache_ttl is 0."""
        prober = ColumnProber(notifications_db)
        prober.column_exists("notifications", "message")
        prober.column_exists("notifications", "message")

        assert len(notifications_db.calls_to("notifications")) == 2

    def test_cached_until_ttl(self, notifications_db):
        """Answers are reused for cache_ttl seconds."""
        now = [100.0]
        prober = ColumnProber(notifications_db, cache_ttl=60, clock=lambda: now[0])

        prober.column_exists("notifications", "title")
        prober.column_exists("notifications", "title")
        assert len(notifications_db.calls_to("notifications")) == 1

        now[0] += 61
        prober.column_exists("notifications", "title")
        assert len(notifications_db.calls_to("notifications")) == 2

    def test_failures_not_cached(self):
        """A failed probe is retried on the next call."""
        client = MagicMock()
        query = client.table.return_value.select.return_value.limit.return_value
        query.execute.side_effect = [httpx.ReadTimeout("timed out"), MagicMock()]
        prober = ColumnProber(client, cache_ttl=60)

        with pytest.raises(SchemaProbeError):
            prober.column_exists("notifications", "title")
        assert prober.column_exists("notifications", "title") is True

    def test_clear_cache(self, notifications_db):
        prober = ColumnProber(notifications_db, cache_ttl=60)
        prober.table_exists("notifications")
        prober.clear_cache()
        prober.table_exists("notifications")

        assert len(notifications_db.calls_to("notifications")) == 2


# =============================================================================
# SchemaResolver
# =============================================================================

class TestSchemaResolver:
    """Tests for SchemaResolver."""

    def test_prefers_first_candidate(self):
        """When both names exist, the new-schema name wins."""
        db = FakeSupabase(tables={"notifications": []}, schema={"notifications": ["related_id", "related_entity_id"]})
        resolver = SchemaResolver(ColumnProber(db))

        assert resolver.resolve_column("notifications", ["related_id", "related_entity_id"]) == "related_id"

    def test_legacy_candidate(self, notifications_db):
        """Only the legacy name exists: the legacy name is returned."""
        resolver = SchemaResolver(ColumnProber(notifications_db))

        assert resolver.resolve_column("notifications", ["related_id", "related_entity_id"]) == "related_entity_id"

    def test_no_candidate(self, notifications_db):
        resolver = SchemaResolver(ColumnProber(notifications_db))
        assert resolver.resolve_column("notifications", ["title"]) is None

    def test_resolve_plan(self, notifications_db):
        """resolve() maps every logical field."""
        resolver = SchemaResolver(ColumnProber(notifications_db))

        plan = resolver.resolve("notifications", {
            "title": ["title"],
            "related_id": ["related_id", "related_entity_id"],
        })

        assert plan.columns == {"title": None, "related_id": "related_entity_id"}
        assert plan.has("related_id") and not plan.has("title")

    def test_find_user_id_column(self):
        db = FakeSupabase(tables={"profiles": []}, schema={"profiles": ["id", "auth_user_id"]})
        assert SchemaResolver(ColumnProber(db)).find_user_id_column("profiles") == "auth_user_id"

    def test_probe_failure_propagates(self):
        """A resolver never guesses when a probe fails."""
        db = FakeSupabase(tables={"notifications": []})
        db.fail("notifications", api_error("42501", "permission denied"))

        with pytest.raises(SchemaProbeError):
            SchemaResolver(ColumnProber(db)).resolve_column("notifications", ["related_id"])


class TestAccessPlan:
    """Tests for AccessPlan helpers."""

    def test_select_clause_appends_resolved_columns(self):
        plan = AccessPlan("notifications", {"title": None, "related_id": "related_entity_id"})
        assert plan.select_clause(["id", "message"]) == "id, message, related_entity_id"

    def test_select_clause_no_duplicates(self):
        plan = AccessPlan("notifications", {"id": "id"})
        assert plan.select_clause(["id"]) == "id"

    def test_read(self):
        plan = AccessPlan("notifications", {"related_id": "related_entity_id", "title": None})
        row = {"related_entity_id": "b-1", "title": "ignored"}

        assert plan.read(row, "related_id") == "b-1"
        assert plan.read(row, "title") is None

# =============================================================================
# lib/diagnostics.py - Schema Report
# =============================================================================
# Probes every table and column the services know about and reports what
# the connected database actually has. Used by GET /diagnostics/schema and
# scripts/check_schema.py.
#
# A probe that fails for a non-schema reason (timeout, auth) is reported as
# unknown with the error message, never as "missing".
# =============================================================================

import logging
from typing import Any, Mapping, Sequence

from lib.schema import ColumnProber, SchemaProbeError

logger = logging.getLogger(__name__)

# Tables and columns read or written somewhere in core/services
EXPECTED_SCHEMA: dict[str, list[str]] = {
    "users": ["id", "email", "role"],
    "teachers": ["id", "first_name", "last_name", "profile_picture_url", "bio", "average_rating", "availability"],
    "students": ["id", "first_name", "last_name", "profile_picture_url"],
    "teacher_profiles": ["id", "full_name", "avatar_url"],
    "student_profiles": ["id", "full_name", "avatar_url"],
    "lessons": ["id", "title", "duration_minutes", "subject_id"],
    "bookings": ["id", "teacher_id", "student_id", "lesson_id", "status", "start_time_utc", "end_time_utc", "created_at"],
    "booking_requests": ["id", "teacher_id", "student_id", "subject", "date", "start_time", "end_time", "message", "status"],
    "notifications": ["id", "user_id", "title", "message", "type", "is_read", "created_at", "related_id", "related_entity_id"],
    "payments": ["id", "booking_id", "teacher_id", "amount", "amount_usd", "teacher_payout_usd", "status", "created_at"],
    "reviews": ["teacher_id", "rating"],
    "teacher_availability": ["teacher_id", "recurring_slots", "specific_dates", "break_periods"],
    "learning_modules": ["id", "name", "subject", "level", "lessons"],
    "student_progress": ["student_id", "module_id", "completed_lessons"],
}


def check_table(prober: ColumnProber, table: str, columns: Sequence[str]) -> dict[str, Any]:
    """
    Probe one table and its columns.

    Returns:
        {"exists": bool | None, "columns": {name: bool | None}, "error": str | None}
        where None means the probe failed for a non-schema reason
    """
    try:
        exists = prober.table_exists(table)
    except SchemaProbeError as e:
        logger.warning(f"Could not probe table {table}: {e.message}")
        return {"exists": None, "columns": {}, "error": e.message}

    if not exists:
        return {"exists": False, "columns": {}, "error": None}

    found: dict[str, bool | None] = {}
    error = None
    for column in columns:
        try:
            found[column] = prober.column_exists(table, column)
        except SchemaProbeError as e:
            found[column] = None
            error = e.message
    return {"exists": True, "columns": found, "error": error}


def schema_report(
    prober: ColumnProber,
    expected: Mapping[str, Sequence[str]] = EXPECTED_SCHEMA,
) -> dict[str, dict[str, Any]]:
    """Probe every expected table; returns table -> check_table() result."""
    report = {table: check_table(prober, table, columns) for table, columns in expected.items()}
    missing = [table for table, entry in report.items() if entry["exists"] is False]
    if missing:
        logger.info(f"Schema report: missing tables {missing}")
    return report

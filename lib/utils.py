# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Small helpers shared by the services:
# - UUID normalization for query filters
# - Lenient conversions for loosely typed database values
# - ApplicationError, the base class for library errors
# =============================================================================

import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        teacher_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        teacher_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Type Conversions
# =============================================================================

def to_number(value: Any, default: float = 0) -> float:
    """
    Convert a database value to a number.

    Postgres numeric columns arrive as strings through PostgREST, and
    nullable columns arrive as None. Anything that cannot be converted
    yields the default.

    Example:
        to_number("4.5")  # 4.5
        to_number(None, 0)  # 0
        to_number("n/a", 0)  # 0
    """
    if value is None or value == "" or isinstance(value, bool):
        return default

    try:
        number = float(value)
    except (TypeError, ValueError):
        return default

    if number != number:  # NaN
        return default
    return number


def ensure_list(value: Any, default: list | None = None) -> list:
    """
    Coerce a loosely typed value into a list.

    Accepts real lists, JSON array strings ('["a", "b"]'),
    comma-separated strings ("a, b") and single scalar strings.
    """
    if default is None:
        default = []

    if isinstance(value, list):
        return value

    if value is None:
        return default

    if isinstance(value, str):
        if value.startswith("[") and value.endswith("]"):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass

        if "," in value:
            return [item.strip() for item in value.split(",")]

        return [value]

    return default


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp from Postgres/PostgREST.

    Handles the trailing "Z" form and assumes UTC for naive values.
    Returns None for empty or unparseable input.
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time in UTC (the default clock for the services)."""
    return datetime.now(timezone.utc)


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for application-specific errors.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }

# =============================================================================
# lib/supabase_client.py - Supabase Client Factory & Error Classification
# =============================================================================
# This module owns the process-wide Supabase client handle and the helpers
# that classify PostgREST errors.
#
# Services never reach for a global client themselves: they receive a
# `supabase.Client` in their constructor. `SupabaseClient.get_client()` is
# only the default handle that FastAPI dependencies and Celery tasks pass in.
#
# Error classification matters because the hosted schema has drifted:
# - 42703 / PGRST204: undefined column  -> soft, triggers a fallback
# - 42P01 / PGRST205: undefined table   -> soft, triggers a fallback
# - PGRST116: .single() matched no rows -> "not found"
# - anything else (network, auth, RLS)  -> a real failure
#
# Usage:
#   from lib.supabase_client import SupabaseClient, is_undefined_column
#   client = SupabaseClient.get_client()
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from app.config import settings
from lib.utils import ApplicationError

# Set up logging for this module
logger = logging.getLogger(__name__)


# Postgres SQLSTATE codes and their PostgREST schema-cache equivalents
UNDEFINED_COLUMN_CODES = frozenset({"42703", "PGRST204"})
UNDEFINED_TABLE_CODES = frozenset({"42P01", "PGRST205"})
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(ApplicationError):
    """Error creating or using the Supabase client."""

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


# =============================================================================
# Error Classification
# =============================================================================

def error_code(error: BaseException) -> str | None:
    """
    Extract the PostgREST/Postgres error code from an exception.

    Returns None for errors that never reached the database
    (timeouts, connection errors, programming errors).
    """
    if isinstance(error, APIError):
        return error.code
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def is_undefined_column(error: BaseException) -> bool:
    """True when the error means "column does not exist"."""
    return error_code(error) in UNDEFINED_COLUMN_CODES


def is_undefined_table(error: BaseException) -> bool:
    """True when the error means "table or view does not exist"."""
    return error_code(error) in UNDEFINED_TABLE_CODES


def is_no_rows(error: BaseException) -> bool:
    """True when a .single() query matched zero rows."""
    return error_code(error) == NO_ROWS_CODE


def is_schema_drift(error: BaseException) -> bool:
    """True for any "object not found" error (missing table or column)."""
    return is_undefined_column(error) or is_undefined_table(error)


# =============================================================================
# Client Factory
# =============================================================================

class SupabaseClient:
    """
    Factory for the shared Supabase client.

    One client instance is created lazily and reused. It is built with
    explicit PostgREST and Storage timeouts so a hung request fails
    instead of blocking the caller indefinitely.

    Example:
        client = SupabaseClient.get_client()
        service = LessonService(client)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the shared Supabase client.

        Uses the service_role key, which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                options = ClientOptions(
                    postgrest_client_timeout=settings.SUPABASE_TIMEOUT_SECONDS,
                    storage_client_timeout=int(settings.SUPABASE_TIMEOUT_SECONDS),
                )
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY,
                    options=options,
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client (used by tests and after credential rotation)."""
        cls._instance = None

# =============================================================================
# lib/schema.py - Runtime Schema Probing
# =============================================================================
# The hosted database went through several unmanaged migrations, so the
# same logical field can live under different physical column names
# (e.g. notifications.related_id vs notifications.related_entity_id).
#
# This module answers two questions at runtime:
# - ColumnProber: does this table / column exist right now?
# - SchemaResolver: which of several candidate names is the real one?
#
# A probe is a minimal PostgREST read. Only the "undefined column" /
# "undefined table" error codes mean "missing"; every other failure
# (timeouts, auth, RLS) is raised as SchemaProbeError so callers never
# mistake an outage for schema drift.
#
# Usage:
#   prober = ColumnProber(client)
#   resolver = SchemaResolver(prober)
#   plan = resolver.resolve("notifications", {
#       "title": ["title"],
#       "related_id": ["related_id", "related_entity_id"],
#   })
#   plan.select_clause(["id", "message"])  # "id, message, title, related_id"
# =============================================================================

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from supabase import Client

from lib.supabase_client import error_code, is_undefined_column, is_undefined_table
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

# Columns that have been used for "the owning auth user" across migrations
USER_ID_CANDIDATES = ("user_id", "auth_id", "auth_user_id")


class SchemaProbeError(ApplicationError):
    """
    A probe failed for a reason other than a missing table or column.

    The original PostgREST code (if any) is kept in `details["db_code"]`.
    """

    def __init__(self, table: str, column: str | None, error: BaseException):
        target = f"{table}.{column}" if column else table
        super().__init__(
            message=f"Could not probe {target}: {error}",
            code="SCHEMA_PROBE_FAILED",
            suggestion="Check database connectivity and the service key; this is not a missing column",
            details={"table": table, "column": column, "db_code": error_code(error)},
        )
        self.__cause__ = error


# =============================================================================
# Column Prober
# =============================================================================

class ColumnProber:
    """
    Checks table and column existence with trial reads.

    Each uncached call is one round trip. With `cache_ttl > 0`, definite
    answers (exists / missing) are reused for that many seconds; failures
    are never cached.
    """

    def __init__(
        self,
        client: Client,
        cache_ttl: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._cache: dict[tuple[str, str | None], tuple[bool, float]] = {}

    def column_exists(self, table: str, column: str) -> bool:
        """
        Check whether `table.column` exists.

        Returns:
            True if a select on the column succeeds, False only for an
            undefined-column error.

        Raises:
            SchemaProbeError: For any other failure (including a missing table)
        """
        cached = self._get_cached(table, column)
        if cached is not None:
            return cached

        try:
            self._client.table(table).select(column).limit(1).execute()
            exists = True
        except Exception as e:
            if not is_undefined_column(e):
                raise SchemaProbeError(table, column, e)
            exists = False

        logger.debug(f"Probed {table}.{column}: {'present' if exists else 'missing'}")
        self._remember(table, column, exists)
        return exists

    def table_exists(self, table: str) -> bool:
        """
        Check whether a table or view exists.

        Raises:
            SchemaProbeError: For failures other than an undefined table
        """
        cached = self._get_cached(table, None)
        if cached is not None:
            return cached

        try:
            self._client.table(table).select("*").limit(1).execute()
            exists = True
        except Exception as e:
            if not is_undefined_table(e):
                raise SchemaProbeError(table, None, e)
            exists = False

        if not exists:
            logger.warning(f"Table '{table}' does not exist in the database")
        self._remember(table, None, exists)
        return exists

    def list_columns(self, table: str) -> list[str]:
        """
        List the columns of a table.

        Reads one sample row; for an empty table asks the
        `get_table_columns` RPC instead (returns [] if that RPC is missing).

        Raises:
            SchemaProbeError: If the sample read fails
        """
        try:
            response = self._client.table(table).select("*").limit(1).execute()
        except Exception as e:
            raise SchemaProbeError(table, None, e)

        rows = response.data or []
        if rows:
            return list(rows[0].keys())

        try:
            response = self._client.rpc("get_table_columns", {"table_name": table}).execute()
        except Exception as e:
            logger.warning(f"get_table_columns RPC unavailable for '{table}': {e}")
            return []

        return [row["column_name"] for row in (response.data or []) if "column_name" in row]

    def clear_cache(self) -> None:
        """Forget every cached probe result."""
        self._cache.clear()

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    def _get_cached(self, table: str, column: str | None) -> bool | None:
        if self._cache_ttl <= 0:
            return None
        entry = self._cache.get((table, column))
        if entry is None:
            return None
        exists, stored_at = entry
        if self._clock() - stored_at > self._cache_ttl:
            del self._cache[(table, column)]
            return None
        return exists

    def _remember(self, table: str, column: str | None, exists: bool) -> None:
        if self._cache_ttl > 0:
            self._cache[(table, column)] = (exists, self._clock())


# =============================================================================
# Schema Resolver
# =============================================================================

@dataclass
class AccessPlan:
    """
    Resolved physical column names for one table.

    `columns` maps each logical field to the physical column that exists,
    or None when no candidate was found.
    """
    table: str
    columns: dict[str, str | None] = field(default_factory=dict)

    def column(self, logical: str) -> str | None:
        """Physical column for a logical field (None if absent)."""
        return self.columns.get(logical)

    def has(self, logical: str) -> bool:
        """Whether the logical field resolved to an existing column."""
        return self.columns.get(logical) is not None

    def select_clause(self, base_columns: Sequence[str]) -> str:
        """Build a PostgREST select list: base columns plus every resolved column."""
        selected = list(base_columns)
        for physical in self.columns.values():
            if physical and physical not in selected:
                selected.append(physical)
        return ", ".join(selected)

    def read(self, row: Mapping[str, Any], logical: str) -> Any:
        """Read a logical field from a row fetched with this plan."""
        physical = self.column(logical)
        return row.get(physical) if physical else None


class SchemaResolver:
    """
    Picks the physical column name for logical fields.

    Candidates are tried in the order given - new-schema name first,
    legacy name after - and the first one the prober confirms wins.
    """

    def __init__(self, prober: ColumnProber):
        self.prober = prober

    def resolve_column(self, table: str, candidates: Sequence[str]) -> str | None:
        """
        Return the first candidate column that exists, or None.

        Raises:
            SchemaProbeError: If a probe fails for a non-schema reason
        """
        for candidate in candidates:
            if self.prober.column_exists(table, candidate):
                return candidate

        logger.info(f"None of {list(candidates)} exist on '{table}'")
        return None

    def resolve(self, table: str, fields: Mapping[str, Sequence[str]]) -> AccessPlan:
        """Resolve several logical fields of one table into an AccessPlan."""
        plan = AccessPlan(table=table)
        for logical, candidates in fields.items():
            plan.columns[logical] = self.resolve_column(table, candidates)
        return plan

    def find_user_id_column(self, table: str) -> str | None:
        """Find the column that references the owning auth user."""
        return self.resolve_column(table, USER_ID_CANDIDATES)

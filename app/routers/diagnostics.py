# =============================================================================
# app/routers/diagnostics.py - Schema Diagnostics Endpoint
# =============================================================================
# Reports which expected tables/columns exist in the connected database.
# Useful when a dashboard list is empty: it tells missing schema apart
# from an outage.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from app.dependencies import ResolverDep
from lib.diagnostics import schema_report

router = APIRouter()


@router.get("/schema")
def get_schema_report(
    resolver: ResolverDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Table/column existence report.

    Each table maps to {"exists", "columns", "error"}; `null` means the
    probe itself failed (see "error").
    """
    return schema_report(resolver.prober)

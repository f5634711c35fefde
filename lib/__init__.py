# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: client factory and PostgREST error classification
# - schema.py: runtime column/table probing and name resolution
# - fallback.py: named fallback chains for degrading read paths
# - utils.py: shared utilities (error base class, UUID/number coercion)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.schema import AccessPlan, ColumnProber, SchemaProbeError, SchemaResolver
from lib.fallback import ChainResult, EmptyResult, FallbackChain, StrategyFailure
from lib.utils import ApplicationError, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Schema probing
    "AccessPlan",
    "ColumnProber",
    "SchemaProbeError",
    "SchemaResolver",
    # Fallback chains
    "ChainResult",
    "EmptyResult",
    "FallbackChain",
    "StrategyFailure",
    # Utils
    "ApplicationError",
    "normalize_uuid",
]

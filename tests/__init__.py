# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the TutorHub API:
# - fakes.py: in-memory FakeSupabase (tables, RPCs, storage, PostgREST errors)
# - test_*_service.py: service read/write paths against current and legacy layouts
# - test_schema.py / test_fallback.py: probing and fallback chains
# - test_api.py: endpoint tests through FastAPI's TestClient
# - test_tasks.py: Celery task bodies, run eagerly
#
# Run tests with: pytest
# =============================================================================

# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic DTOs returned by the API
# - mappers.py: raw row -> DTO normalization
# - services/: lesson, notification, payment, booking, teacher, upload
#   and email services
#
# Code in this package should NOT import from FastAPI routers or Celery.
# Services receive their Supabase client instead of creating one, which
# keeps them testable against an in-memory fake.
# =============================================================================

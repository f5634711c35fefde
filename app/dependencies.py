# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Services are built per request around the shared Supabase client. Tests
# replace them through app.dependency_overrides.
# =============================================================================

from typing import Annotated

from fastapi import Depends
from supabase import Client

from app.config import settings
from core.services import (
    BookingRequestService,
    BookingService,
    LessonService,
    NotificationService,
    PaymentService,
    TeacherService,
    UploadService,
)
from lib.schema import ColumnProber, SchemaResolver
from lib.supabase_client import SupabaseClient

# Process-wide prober so SCHEMA_CACHE_TTL_SECONDS spans requests
_prober: ColumnProber | None = None


def get_supabase_client() -> Client:
    """Get the shared Supabase client."""
    return SupabaseClient.get_client()


SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


def get_schema_resolver(client: SupabaseDep) -> SchemaResolver:
    """Schema resolver backed by the process-wide (optionally cached) prober."""
    global _prober
    if _prober is None:
        _prober = ColumnProber(client, cache_ttl=settings.SCHEMA_CACHE_TTL_SECONDS)
    return SchemaResolver(_prober)


ResolverDep = Annotated[SchemaResolver, Depends(get_schema_resolver)]


# =============================================================================
# Services
# =============================================================================

def get_lesson_service(client: SupabaseDep) -> LessonService:
    return LessonService(client)


def get_notification_service(client: SupabaseDep, resolver: ResolverDep) -> NotificationService:
    return NotificationService(client, resolver)


def get_payment_service(client: SupabaseDep, resolver: ResolverDep) -> PaymentService:
    return PaymentService(client, resolver)


def get_booking_service(
    client: SupabaseDep,
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> BookingService:
    return BookingService(client, notifications)


def get_booking_request_service(client: SupabaseDep, resolver: ResolverDep) -> BookingRequestService:
    return BookingRequestService(client, resolver.prober)


def get_teacher_service(client: SupabaseDep) -> TeacherService:
    return TeacherService(client)


def get_upload_service(client: SupabaseDep) -> UploadService:
    return UploadService(client)


# Type aliases for dependency injection
LessonServiceDep = Annotated[LessonService, Depends(get_lesson_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
BookingRequestServiceDep = Annotated[BookingRequestService, Depends(get_booking_request_service)]
TeacherServiceDep = Annotated[TeacherService, Depends(get_teacher_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]

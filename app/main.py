# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the TutorHub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import TutorHubException, tutorhub_exception_handler
from app.routers import bookings, diagnostics, health, lessons, notifications, payments, teachers, uploads
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration and shutdown."""
    logger.info(f"Starting TutorHub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if settings.SCHEMA_CACHE_TTL_SECONDS:
        logger.info(f"Schema probe cache TTL: {settings.SCHEMA_CACHE_TTL_SECONDS}s")

    yield

    logger.info("Shutting down TutorHub API")


# Create FastAPI application
app = FastAPI(
    title="TutorHub API",
    description="""
## Tutoring Marketplace API

Students book lessons with teachers; teachers manage requests, availability
and earnings.

### Schema tolerance

The hosted database has been migrated several times. Reads probe for
tables/columns and fall back through alternative query strategies, so a
missing column yields defaults (e.g. "Unknown Teacher") or an empty list
instead of an error. Writes report failures with a `code` and `suggestion`.

`GET /api/v1/diagnostics/schema` shows which expected tables and columns
the connected database has.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Token verification and current user"},
        {"name": "Lessons", "description": "Upcoming/past lessons, stats and status changes"},
        {"name": "Notifications", "description": "Inbox and unread counter"},
        {"name": "Payments", "description": "Teacher payments and earnings"},
        {"name": "Bookings", "description": "Bookings and booking requests"},
        {"name": "Modules", "description": "Learning modules and progress"},
        {"name": "Teachers", "description": "Teacher profiles, ratings and availability"},
        {"name": "Uploads", "description": "Profile image storage"},
        {"name": "Diagnostics", "description": "Schema existence report"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(TutorHubException)
async def handle_tutorhub_exception(request: Request, exc: TutorHubException):
    """Handle custom TutorHub exceptions."""
    return await tutorhub_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(lessons.router, prefix="/api/v1/lessons", tags=["Lessons"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(bookings.router, prefix="/api/v1/bookings", tags=["Bookings"])
app.include_router(bookings.modules_router, prefix="/api/v1/modules", tags=["Modules"])
app.include_router(teachers.router, prefix="/api/v1/teachers", tags=["Teachers"])
app.include_router(uploads.router, prefix="/api/v1/uploads", tags=["Uploads"])
app.include_router(diagnostics.router, prefix="/api/v1/diagnostics", tags=["Diagnostics"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint - returns API info."""
    return {
        "name": "TutorHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }

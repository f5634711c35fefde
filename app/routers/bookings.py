# =============================================================================
# app/routers/bookings.py - Booking & Learning Module Endpoints
# =============================================================================
# Two routers share this module:
# - router: /bookings (immediate bookings and booking requests)
# - modules_router: /modules (learning modules and progress)
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user
from app.dependencies import BookingRequestServiceDep, BookingServiceDep
from app.exceptions import (
    BookingPermissionError,
    BookingRequestNotFoundError,
    LearningModuleNotFoundError,
)
from core.models.booking import BookingCreate, BookingRequest, BookingRequestUpdate
from core.models.learning_module import LearningModule
from core.models.lesson import Lesson
from workers.tasks import enqueue, send_booking_confirmation

logger = logging.getLogger(__name__)

router = APIRouter()
modules_router = APIRouter()


def _require_participant(booking: BookingCreate, user: AuthUser) -> None:
    if str(user.id) not in (booking.student_id, booking.teacher_id):
        raise BookingPermissionError()


# =============================================================================
# Bookings
# =============================================================================

@router.post("", response_model=Lesson, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: BookingCreate,
    service: BookingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Book a lesson immediately (status confirmed).

    The teacher gets a notification and both sides get a confirmation email.
    """
    _require_participant(booking, user)
    lesson = service.create_booking(booking)
    enqueue(send_booking_confirmation, lesson.id)
    return lesson


@router.post("/requests", response_model=BookingRequest, status_code=status.HTTP_201_CREATED)
def create_booking_request(
    booking: BookingCreate,
    service: BookingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Ask a teacher for a lesson; the teacher approves or rejects it later."""
    _require_participant(booking, user)
    return service.create_booking_request(booking)


@router.get("/requests", response_model=list[BookingRequest])
def list_booking_requests(
    service: BookingRequestServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Booking requests addressed to the calling teacher, newest first."""
    return service.get_teacher_booking_requests(user.id)


@router.patch("/requests/{request_id}")
def answer_booking_request(
    request_id: Annotated[UUID, Path(description="Booking request UUID")],
    update: BookingRequestUpdate,
    service: BookingRequestServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Approve or reject a booking request addressed to the calling teacher.

    Raises:
        404: If no request with this id is addressed to the caller
    """
    if not service.update_booking_request_status(request_id, update.status, user.id):
        raise BookingRequestNotFoundError(str(request_id))
    logger.info(f"User {user.id} set booking request {request_id} to {update.status.value}")
    return {"id": str(request_id), "status": update.status.value}


# =============================================================================
# Learning Modules
# =============================================================================

@modules_router.get("", response_model=list[LearningModule])
def list_modules(
    subject: Annotated[str, Query(min_length=1, description="Subject name, e.g. Mathematics")],
    service: BookingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Modules for a subject (generated ones when none are stored)."""
    return service.get_modules_for_subject(subject)


@modules_router.get("/{module_id}/progress", response_model=LearningModule)
def module_progress(
    module_id: Annotated[str, Path(description="Module id")],
    service: BookingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    The calling student's progress through a module.

    Raises:
        404: If the module is unknown
    """
    module = service.get_student_module_progress(user.id, module_id)
    if module is None:
        raise LearningModuleNotFoundError(module_id)
    return module

# =============================================================================
# app/routers/lessons.py - Lesson Endpoints
# =============================================================================
# Dashboard lesson lists and stats, plus status changes.
# All endpoints require authentication; lists are for the calling user in
# the role given by ?role=student|teacher.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user
from app.dependencies import LessonServiceDep
from core.models.lesson import Lesson, LessonAction, LessonStats, UserRole
from workers.tasks import enqueue, send_booking_cancellation, send_booking_confirmation

logger = logging.getLogger(__name__)

router = APIRouter()

RoleQuery = Annotated[UserRole, Query(description="Which side of the booking the caller is on")]


@router.get("/upcoming", response_model=list[Lesson])
def get_upcoming_lessons(
    role: RoleQuery,
    service: LessonServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Lessons starting later than now or later today, soonest first.

    Returns an empty list (not an error) when lessons cannot be loaded.
    """
    return service.get_upcoming_lessons(user.id, role)


@router.get("/past", response_model=list[Lesson])
def get_past_lessons(
    role: RoleQuery,
    service: LessonServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Lessons before today, most recent first."""
    return service.get_past_lessons(user.id, role)


@router.get("/stats", response_model=LessonStats)
def get_lesson_stats(
    role: RoleQuery,
    service: LessonServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Upcoming/completed counts, unique counterparts and hours taught or taken."""
    return service.get_lesson_stats(user.id, role)


@router.post("/{lesson_id}/{action}", response_model=Lesson)
def change_lesson_status(
    lesson_id: Annotated[UUID, Path(description="Lesson (booking) UUID")],
    action: Annotated[LessonAction, Path(description="confirm, cancel or complete")],
    service: LessonServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Confirm, cancel or complete a lesson.

    Only the teacher may confirm or complete; either participant may
    cancel. Confirmation and cancellation emails are queued.
    """
    lesson = service.update_lesson_status(lesson_id, action, user.id)

    if action is LessonAction.CANCEL:
        enqueue(send_booking_cancellation, lesson.id)
    elif action is LessonAction.CONFIRM:
        enqueue(send_booking_confirmation, lesson.id)

    return lesson

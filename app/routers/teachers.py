# =============================================================================
# app/routers/teachers.py - Teacher Profile Endpoints
# =============================================================================
# GET routes read any teacher; /me routes write the caller's own profile.
# Routes under /me are declared first so "me" is never taken as an id.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from app.dependencies import TeacherServiceDep
from app.exceptions import TeacherNotFoundError
from core.models.teacher import Teacher, TeacherAvailability, TeacherProfileUpdate, TeacherRating

router = APIRouter()

TeacherIdPath = Annotated[UUID, Path(description="Teacher (user) UUID")]


@router.put("/me", response_model=Teacher)
def update_my_profile(
    update: TeacherProfileUpdate,
    service: TeacherServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Create or update the caller's teacher profile (only fields sent)."""
    return service.update_teacher_profile(user.id, update)


@router.put("/me/availability", response_model=TeacherAvailability)
def save_my_availability(
    availability: TeacherAvailability,
    service: TeacherServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Replace the caller's weekly slots, specific dates and breaks."""
    service.save_availability(user.id, availability)
    return availability


@router.get("/{teacher_id}", response_model=Teacher)
def get_teacher(
    teacher_id: TeacherIdPath,
    service: TeacherServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    A teacher's profile.

    Reading your own missing profile creates a minimal one from your
    sign-up details.

    Raises:
        404: If the teacher doesn't exist
    """
    own = teacher_id == user.id
    teacher = service.get_teacher_profile(
        teacher_id,
        metadata=user.user_metadata if own else None,
        create_missing=own,
    )
    if teacher is None:
        raise TeacherNotFoundError(str(teacher_id))
    return teacher


@router.get("/{teacher_id}/rating", response_model=TeacherRating)
def get_rating(
    teacher_id: TeacherIdPath,
    service: TeacherServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Average review rating (one decimal) and number of reviews."""
    return service.get_teacher_rating(teacher_id)


@router.get("/{teacher_id}/availability", response_model=TeacherAvailability)
def get_availability(
    teacher_id: TeacherIdPath,
    service: TeacherServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """A teacher's availability (empty lists when none is stored)."""
    return service.get_availability(teacher_id)

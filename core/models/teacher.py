# =============================================================================
# core/models/teacher.py - Teacher Profile Schemas
# =============================================================================

from typing import Any

from pydantic import Field

from .base import CamelModel


class Teacher(CamelModel):
    """A teacher's public profile."""
    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    profile_picture_url: str | None = None
    intro_video_url: str | None = None
    bio: str | None = None
    qualifications: Any = Field(default_factory=dict)
    experience: str | None = None
    time_zone: str | None = None
    is_verified: bool = False
    average_rating: float = 0.0
    contact_number: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class TeacherProfileUpdate(CamelModel):
    """
    Partial profile update. Only fields that are set are written.

    `full_name` is accepted for older clients and split into first/last
    name when those are not given.
    """
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    profile_picture_url: str | None = None
    intro_video_url: str | None = None
    bio: str | None = None
    qualifications: Any = None
    experience: str | None = None
    time_zone: str | None = None
    contact_number: str | None = None


class TeacherRating(CamelModel):
    """Average review rating (one decimal) and review count."""
    average: float = 0.0
    count: int = 0


class TeacherAvailability(CamelModel):
    """Weekly slots, one-off dates and breaks, stored as opaque JSON."""
    recurring_slots: list[Any] = Field(default_factory=list)
    specific_dates: list[Any] = Field(default_factory=list)
    break_periods: list[Any] = Field(default_factory=list)

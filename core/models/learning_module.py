# =============================================================================
# core/models/learning_module.py - Learning Module Schemas
# =============================================================================
# Learning modules group lessons into a course. When the learning_modules
# table is missing or empty, a generated catalogue is served instead, so
# these objects do not necessarily reflect persisted state.
# =============================================================================

from pydantic import Field

from .base import CamelModel


class LearningModule(CamelModel):
    """A course module for a subject."""
    id: str
    name: str
    description: str = ""
    subject: str
    level: str = "Beginner"
    lessons: int = Field(default=0, ge=0)
    completed_lessons: int | None = Field(default=None, ge=0)
    progress: float | None = Field(default=None, ge=0, le=100)

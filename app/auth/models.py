# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, Field
from uuid import UUID
from typing import Any, Optional


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the user info available from the token itself, without
    querying the database. `user_metadata` carries what was entered at
    sign-up (first_name, last_name, avatar_url, role).
    """
    id: UUID
    email: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True  # Make immutable


class UserResponse(BaseModel):
    """
    Full user response for API endpoints.

    Includes the marketplace role from the public.users table.
    """
    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and login happen client-side against Supabase Auth. These routes
# let the front-end check its token and read the marketplace role.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from app.dependencies import SupabaseDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    client: SupabaseDep,
    user: AuthUser = Depends(get_current_user),
) -> UserResponse:
    """
    Get the current user's row from public.users.

    Falls back to the token's own data when the row is missing (the
    sign-up trigger may not have run yet).
    """
    try:
        response = client.table("users").select("*").eq("id", str(user.id)).limit(1).execute()
        rows = response.data or []
        if rows:
            return UserResponse.model_validate(rows[0])
    except Exception as e:
        logger.warning(f"Could not fetch user row for {user.id}: {e}")

    metadata = user.user_metadata
    return UserResponse(
        id=user.id,
        email=user.email,
        role=metadata.get("role"),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        avatar_url=metadata.get("avatar_url"),
    )


@router.get("/verify")
async def verify_token(user: AuthUser = Depends(get_current_user)) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
    }

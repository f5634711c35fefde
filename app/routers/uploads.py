# =============================================================================
# app/routers/uploads.py - Profile Image Upload Endpoints
# =============================================================================
# Handles avatar uploads to Supabase Storage.
# Validation errors (type, size) come back as 400/413 with a suggestion.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel

from app.auth import AuthUser, get_current_user
from app.dependencies import UploadServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


class AvatarUploadResponse(BaseModel):
    """Response after storing an avatar."""
    url: str
    message: str = "Profile image uploaded successfully"


class AvatarDeleteResponse(BaseModel):
    deleted: bool


@router.post("/avatar", response_model=AvatarUploadResponse)
async def upload_avatar(
    service: UploadServiceDep,
    file: UploadFile = File(..., description="Image file (max 2MB)"),
    user: AuthUser = Depends(get_current_user),
):
    """
    Upload a profile image for the caller.

    Returns the public URL to store on the profile.
    """
    content = await file.read()
    url = service.upload_profile_image(user.id, file.filename or "avatar", content, file.content_type)
    return AvatarUploadResponse(url=url)


@router.delete("/avatar", response_model=AvatarDeleteResponse)
def delete_avatar(
    url: Annotated[str, Query(description="Public URL returned by the upload")],
    service: UploadServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete one of the caller's uploaded images.

    Only objects in the caller's own folder can be deleted; anything else
    reports deleted=false.
    """
    return AvatarDeleteResponse(deleted=service.delete_profile_image(user.id, url))

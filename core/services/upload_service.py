# =============================================================================
# core/services/upload_service.py - Profile Image Storage
# =============================================================================
# Stores profile pictures in Supabase Storage under {user_id}/{uuid}.{ext}
# and hands back the public URL. Validation failures (not an image, too
# large) and storage failures raise; deletion reports success as a bool.
# =============================================================================

import logging
from urllib.parse import unquote, urlparse
from uuid import UUID, uuid4

from supabase import Client

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

CACHE_CONTROL_SECONDS = "3600"


def file_extension(filename: str) -> str:
    """Extension after the last dot, lowercased ("png" for "me.PNG")."""
    if "." not in filename:
        return "img"
    return filename.rsplit(".", 1)[-1].lower() or "img"


def storage_path_from_url(url: str, bucket: str) -> str | None:
    """
    Object path inside `bucket` for a public storage URL.

    "https://x.supabase.co/storage/v1/object/public/avatars/u1/a.png"
    -> "u1/a.png"
    """
    path = unquote(urlparse(url).path)
    marker = f"/{bucket}/"
    if marker not in path:
        return None
    return path.split(marker, 1)[1] or None


def owns_object(path: str, user_id: str) -> bool:
    """True for "{user_id}/{file}" paths with no empty, "." or ".." segments."""
    parts = path.split("/")
    if len(parts) != 2 or any(part in ("", ".", "..") for part in parts):
        return False
    return parts[0] == user_id


class UploadService:
    """
    Service for profile image uploads.

    Args:
        client: Supabase client handle
        bucket: Storage bucket (defaults to AVATAR_BUCKET)
    """

    def __init__(self, client: Client, bucket: str | None = None):
        self.client = client
        self.bucket = bucket or settings.AVATAR_BUCKET

    def upload_profile_image(
        self,
        user_id: str | UUID,
        filename: str,
        content: bytes,
        content_type: str | None,
    ) -> str:
        """
        Validate and store a profile image.

        Args:
            user_id: Owner; used as the folder name
            filename: Original filename (for the extension)
            content: File bytes
            content_type: MIME type reported by the client

        Returns:
            Public URL of the stored image

        Raises:
            InvalidFileTypeError: If the content type is not image/*
            FileTooLargeError: If the file exceeds MAX_AVATAR_SIZE_MB
            StorageUploadError: If the upload fails
        """
        if not content_type or not content_type.startswith("image/"):
            raise InvalidFileTypeError(filename, content_type)

        if len(content) > settings.max_avatar_size_bytes:
            raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_AVATAR_SIZE_MB)

        path = f"{normalize_uuid(user_id)}/{uuid4()}.{file_extension(filename)}"
        storage = self.client.storage.from_(self.bucket)

        try:
            storage.upload(
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": CACHE_CONTROL_SECONDS,
                    "upsert": "true",
                },
            )
            url = storage.get_public_url(path)
        except Exception as e:
            logger.error(f"Profile image upload failed for {path}: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded profile image to {self.bucket}/{path}")
        return url.rstrip("?")

    def delete_profile_image(self, user_id: str | UUID, url: str) -> bool:
        """
        Delete one of the user's uploaded images by its public URL.

        Only "{user_id}/{file}" objects in this bucket qualify; the check
        runs on the parsed object path, never on the raw URL.

        Returns:
            True if storage reports the object removed, False otherwise
        """
        owner = normalize_uuid(user_id)
        path = storage_path_from_url(url, self.bucket)
        if path is None:
            logger.warning(f"URL is not in bucket '{self.bucket}': {url}")
            return False

        if not owns_object(path, owner):
            logger.warning(f"User {owner} may not delete {self.bucket}/{path}")
            return False

        try:
            removed = self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            logger.error(f"Failed to delete profile image {path}: {e}")
            return False

        if not removed:
            logger.warning(f"Profile image {self.bucket}/{path} was not found in storage")
            return False

        logger.info(f"Deleted profile image {self.bucket}/{path}")
        return True

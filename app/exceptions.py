# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Following the principle: "Errors should tell HOW to fix, not just WHAT failed."
#
# Read paths never raise these - they degrade to empty results.
# Write paths (booking creation, status changes, uploads) raise them so
# the UI can show a failure message.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class TutorHubException(Exception):
    """
    Base exception for the TutorHub API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "TUTORHUB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Generic Write Failures
# =============================================================================

class DatabaseWriteError(TutorHubException):
    """Raised when an insert/update against the hosted database fails."""

    def __init__(self, operation: str, error: str, db_code: str | None = None):
        super().__init__(
            message=f"Failed to {operation}: {error}",
            code="DATABASE_WRITE_FAILED",
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "db_code": db_code} if db_code else {"operation": operation}
        )


# =============================================================================
# Lesson Exceptions
# =============================================================================

class LessonNotFoundError(TutorHubException):
    """Raised when a lesson (booking) ID doesn't exist."""

    def __init__(self, lesson_id: str):
        super().__init__(
            message=f"Lesson not found: {lesson_id}",
            code="LESSON_NOT_FOUND",
            status_code=404,
            suggestion="Check that the lesson id is correct",
            details={"lesson_id": lesson_id}
        )


class LessonPermissionError(TutorHubException):
    """Raised when a user acts on a lesson they are not allowed to change."""

    def __init__(self, lesson_id: str, action: str):
        super().__init__(
            message=f"You are not allowed to {action} lesson {lesson_id}",
            code="LESSON_FORBIDDEN",
            status_code=403,
            suggestion="Only the lesson's teacher can confirm or complete it; either participant can cancel",
            details={"lesson_id": lesson_id, "action": action}
        )


class InvalidLessonTransitionError(TutorHubException):
    """Raised when a status change is not valid from the current status."""

    def __init__(self, lesson_id: str, action: str, current_status: str):
        super().__init__(
            message=f"Cannot {action} a lesson that is {current_status}",
            code="INVALID_LESSON_TRANSITION",
            status_code=409,
            suggestion="Refresh the lesson to see its current status",
            details={"lesson_id": lesson_id, "action": action, "current_status": current_status}
        )


# =============================================================================
# Notification Exceptions
# =============================================================================

class NotificationNotFoundError(TutorHubException):
    """Raised when marking a notification that doesn't exist."""

    def __init__(self, notification_id: str):
        super().__init__(
            message=f"Notification not found: {notification_id}",
            code="NOTIFICATION_NOT_FOUND",
            status_code=404,
            details={"notification_id": notification_id}
        )


# =============================================================================
# Booking Exceptions
# =============================================================================

class BookingRequestNotFoundError(TutorHubException):
    """Raised when a booking request cannot be updated."""

    def __init__(self, request_id: str):
        super().__init__(
            message=f"Booking request not found: {request_id}",
            code="BOOKING_REQUEST_NOT_FOUND",
            status_code=404,
            suggestion="The request may have been withdrawn, or no bookings table exists",
            details={"request_id": request_id}
        )


class BookingPermissionError(TutorHubException):
    """Raised when a user books on behalf of someone else."""

    def __init__(self):
        super().__init__(
            message="You can only create bookings you take part in",
            code="BOOKING_FORBIDDEN",
            status_code=403,
            suggestion="Use your own id as studentId (or teacherId)",
        )


# =============================================================================
# Profile & Module Exceptions
# =============================================================================

class TeacherNotFoundError(TutorHubException):
    """Raised when a teacher profile doesn't exist."""

    def __init__(self, teacher_id: str):
        super().__init__(
            message=f"Teacher not found: {teacher_id}",
            code="TEACHER_NOT_FOUND",
            status_code=404,
            details={"teacher_id": teacher_id}
        )


class LearningModuleNotFoundError(TutorHubException):
    """Raised when a learning module id is unknown."""

    def __init__(self, module_id: str):
        super().__init__(
            message=f"Learning module not found: {module_id}",
            code="MODULE_NOT_FOUND",
            status_code=404,
            suggestion="List modules with GET /modules?subject=... to find valid ids",
            details={"module_id": module_id}
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(TutorHubException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, content_type: str | None):
        super().__init__(
            message="Please upload an image file",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion="Upload a JPEG, PNG, GIF or WebP image",
            details={"filename": filename, "content_type": content_type}
        )


class FileTooLargeError(TutorHubException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File size should be less than {max_mb}MB",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB (got {size_mb:.1f}MB)",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class StorageUploadError(TutorHubException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def tutorhub_exception_handler(
    request: Request,
    exc: TutorHubException
) -> JSONResponse:
    """
    Convert TutorHubException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )

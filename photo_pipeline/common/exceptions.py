"""Custom exceptions for the photo pipeline.

Each exception carries an optional :class:`ErrorCode` so the HTTP layer and
logs can report a stable code alongside the message.
"""

from typing import Optional

from photo_pipeline.common.error_codes import (
    ACTIVITY_ERRORS,
    CLIENT_ERRORS,
    IO_ERRORS,
    ErrorCode,
)


class PhotoPipelineError(Exception):
    """Base exception for the photo pipeline.

    Attributes:
        message: Human-readable error message.
        error_code: Stable error code, if one applies.
    """

    default_error_code: Optional[ErrorCode] = None

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"{self.error_code.code}: {self.message}"
        return self.message


class InvalidImageError(PhotoPipelineError):
    """Raised when image bytes are structurally invalid and cannot be decoded.

    Retrying cannot fix this, so activities surface it as non-retryable.
    """

    default_error_code = ACTIVITY_ERRORS["INVALID_IMAGE_ERROR"]


class PhotoNotFoundError(PhotoPipelineError):
    """Raised when a photo id has no catalog row or stored object."""

    default_error_code = CLIENT_ERRORS["PHOTO_NOT_FOUND_ERROR"]

    def __init__(self, photo_id: str, message: Optional[str] = None):
        super().__init__(message or f"Photo with id {photo_id} does not exist")
        self.photo_id = photo_id


class ObjectNotFoundError(PhotoPipelineError):
    """Raised by object stores when a key does not exist."""

    default_error_code = IO_ERRORS["OBJECT_NOT_FOUND_ERROR"]


class UploadError(PhotoPipelineError):
    """Raised when a single uploaded file could not be ingested."""

    default_error_code = CLIENT_ERRORS["UPLOAD_PARSE_ERROR"]


class AuthorizationError(PhotoPipelineError):
    """Raised when a mutating request carries no valid bearer token."""

    default_error_code = CLIENT_ERRORS["UNAUTHORIZED_ERROR"]


class UploadTooLargeError(PhotoPipelineError):
    default_error_code = CLIENT_ERRORS["UPLOAD_TOO_LARGE_ERROR"]

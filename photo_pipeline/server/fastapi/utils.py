"""FastAPI utility functions.

Error handlers that render failures in the API's common
``{"success": false, "error": ..., "details": ...}`` shape.
"""

from fastapi import status
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from photo_pipeline.common.exceptions import PhotoPipelineError

# Paths excluded from request logging
EXCLUDED_LOG_PATHS: frozenset[str] = frozenset({"/server/health", "/server/ready"})


def error_response(status_code: int, error: str, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "details": details},
    )


def internal_server_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Render unhandled errors as a generic 500 response."""
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal error has occurred.",
        str(exc),
    )


def pipeline_error_handler(_: Request, exc: PhotoPipelineError) -> JSONResponse:
    """Map a :class:`PhotoPipelineError` to the HTTP status of its error code."""
    status_code = (
        exc.error_code.http_code
        if exc.error_code
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    error = exc.error_code.description if exc.error_code else "Photo pipeline error"
    return error_response(status_code, error, exc.message)


def value_error_handler(_: Request, exc: Exception) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request.", str(exc))

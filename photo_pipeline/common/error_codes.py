"""
Error codes for the photo pipeline.

Error codes follow the format: Photo-{Component}-{HTTP_Code}-{Unique_ID}

Components:
- Client: Caller-facing request errors
- Workflow: Orchestration errors
- Activity: Activity-specific errors
- IO: Object store errors
"""


class ErrorCode:
    """Error code with component, HTTP code, and description."""

    def __init__(
        self, component: str, http_code: str, unique_id: str, description: str
    ):
        self.code = f"Photo-{component}-{http_code}-{unique_id}"
        self.http_code = int(http_code)
        self.description = description

    def __str__(self) -> str:
        return f"{self.code}: {self.description}"


CLIENT_ERRORS = {
    "UPLOAD_PARSE_ERROR": ErrorCode("Client", "400", "00", "Upload could not be parsed"),
    "UNAUTHORIZED_ERROR": ErrorCode("Client", "401", "00", "Caller is not authorized"),
    "PHOTO_NOT_FOUND_ERROR": ErrorCode("Client", "404", "00", "Photo not found"),
    "UPLOAD_TOO_LARGE_ERROR": ErrorCode(
        "Client", "413", "00", "Upload exceeds the request size limit"
    ),
}

WORKFLOW_ERRORS = {
    "WORKFLOW_CLIENT_NOT_LOADED_ERROR": ErrorCode(
        "Workflow", "500", "00", "Workflow client is not loaded"
    ),
    "WORKFLOW_CLIENT_START_ERROR": ErrorCode(
        "Workflow", "500", "01", "Workflow client start error"
    ),
    "WORKFLOW_CLIENT_STATUS_ERROR": ErrorCode(
        "Workflow", "500", "02", "Workflow client status error"
    ),
}

ACTIVITY_ERRORS = {
    "INVALID_IMAGE_ERROR": ErrorCode(
        "Activity", "422", "00", "Image data could not be decoded"
    ),
}

IO_ERRORS = {
    "OBJECT_NOT_FOUND_ERROR": ErrorCode("IO", "404", "00", "Object not found"),
}

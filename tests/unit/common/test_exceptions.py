import pytest

from photo_pipeline.common.error_codes import (
    ACTIVITY_ERRORS,
    CLIENT_ERRORS,
    IO_ERRORS,
    WORKFLOW_ERRORS,
    ErrorCode,
)
from photo_pipeline.common.exceptions import (
    AuthorizationError,
    InvalidImageError,
    ObjectNotFoundError,
    PhotoNotFoundError,
    PhotoPipelineError,
    UploadTooLargeError,
)


def test_error_code_format():
    code = ErrorCode("Client", "404", "00", "Photo not found")

    assert code.code == "Photo-Client-404-00"
    assert code.http_code == 404
    assert str(code) == "Photo-Client-404-00: Photo not found"


@pytest.mark.parametrize(
    "table", [CLIENT_ERRORS, WORKFLOW_ERRORS, ACTIVITY_ERRORS, IO_ERRORS]
)
def test_codes_are_unique_within_each_table(table):
    codes = [error_code.code for error_code in table.values()]
    assert len(codes) == len(set(codes))


@pytest.mark.parametrize(
    "exc, http_code",
    [
        (PhotoNotFoundError("p1"), 404),
        (ObjectNotFoundError("photos/p1/small.jpg"), 404),
        (AuthorizationError("no token"), 401),
        (UploadTooLargeError("too big"), 413),
    ],
)
def test_default_error_codes(exc, http_code):
    assert exc.error_code.http_code == http_code


def test_message_carries_code():
    exc = PhotoNotFoundError("p1")

    assert exc.photo_id == "p1"
    assert exc.message == "Photo with id p1 does not exist"
    assert str(exc).startswith(exc.error_code.code)


def test_explicit_code_wins():
    exc = InvalidImageError("bad", WORKFLOW_ERRORS["WORKFLOW_CLIENT_START_ERROR"])
    assert exc.error_code is WORKFLOW_ERRORS["WORKFLOW_CLIENT_START_ERROR"]


def test_plain_error_without_code():
    exc = PhotoPipelineError("something broke")
    assert exc.error_code is None
    assert str(exc) == "something broke"

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from photo_pipeline.common.exceptions import UploadTooLargeError
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.server.fastapi.utils import pipeline_error_handler

logger = get_logger(__name__)


class RequestSizeLimitMiddleware:
    """Rejects request bodies larger than ``max_bytes`` with a 413.

    The declared ``Content-Length`` is checked up front. Bodies without one
    (chunked uploads) are counted as they stream in and cut off as soon as
    they pass the limit.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    def _too_large(self, size: str) -> UploadTooLargeError:
        return UploadTooLargeError(
            f"Request body of {size} bytes exceeds the limit of {self.max_bytes} bytes"
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_bytes:
                response = pipeline_error_handler(
                    Request(scope), self._too_large(content_length)
                )
                await response(scope, receive, send)
                return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    exceeded = True
                    raise self._too_large(f"more than {self.max_bytes}")
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            # Whatever the app answers to a cut off body is replaced by the 413
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded or response_started:
                raise

        if exceeded and not response_started:
            logger.warning(
                f"Rejected streamed request body after {received} bytes",
                extra={"path": scope.get("path")},
            )
            response = pipeline_error_handler(
                Request(scope), self._too_large(f"more than {self.max_bytes}")
            )
            await response(scope, receive, send)

import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from photo_pipeline.observability.logger_adaptor import get_logger, request_context
from photo_pipeline.server.fastapi.utils import EXCLUDED_LOG_PATHS

logger = get_logger(__name__)


class LogMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())

        token = request_context.set({"request_id": request_id})
        start_time = time.time()
        should_log = request.url.path not in EXCLUDED_LOG_PATHS

        if should_log:
            logger.info(
                "Request started",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "url": str(request.url),
                    "client_host": request.client.host if request.client else None,
                },
            )

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            if should_log:
                logger.info(
                    "Request completed",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration * 1000, 2),
                    },
                )
            response.headers["x-request-id"] = request_id
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "Request failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "duration_ms": round(duration * 1000, 2),
                },
                exc_info=True,
            )
            raise
        finally:
            request_context.reset(token)

import hmac
from typing import List, Optional

from fastapi import Depends, File, UploadFile, status
from fastapi.applications import FastAPI
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from fastapi.routing import APIRouter
from uvicorn import Config, Server

from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.common.error_codes import WORKFLOW_ERRORS
from photo_pipeline.common.exceptions import (
    AuthorizationError,
    PhotoPipelineError,
)
from photo_pipeline.constants import APP_HOST, APP_PORT
from photo_pipeline.handlers.photos import PhotoHandler
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.server import ServerInterface
from photo_pipeline.server.fastapi.middleware.logmiddleware import LogMiddleware
from photo_pipeline.server.fastapi.middleware.size import RequestSizeLimitMiddleware
from photo_pipeline.server.fastapi.models import (
    DeletePhotoResponse,
    PhotoDetailResponse,
    PhotoListResponse,
    PhotoResponse,
    UploadResponse,
    WorkflowStatusResponse,
)
from photo_pipeline.server.fastapi.routers.server import get_server_router
from photo_pipeline.server.fastapi.utils import (
    internal_server_error_handler,
    pipeline_error_handler,
    value_error_handler,
)

logger = get_logger(__name__)


class APIServer(ServerInterface):
    """FastAPI server exposing photo upload, retrieval and deletion.

    Attributes:
        app (FastAPI): The FastAPI application.
        handler (PhotoHandler): Handler doing the actual work.
        workflow_client (Optional[WorkflowClient]): Client for workflow status.
        photos_router (APIRouter): Router for ``/photos``.
        workflow_router (APIRouter): Router for ``/workflows/v1``.
        api_token (str): Bearer token required for uploads and deletes. An
            empty token disables the check.
    """

    app: FastAPI
    handler: PhotoHandler
    workflow_client: Optional[WorkflowClient]
    photos_router: APIRouter
    workflow_router: APIRouter

    def __init__(
        self,
        handler: PhotoHandler,
        workflow_client: Optional[WorkflowClient] = None,
        api_token: str = "",
        max_upload_bytes: int = 100 << 20,
        lifespan=None,
    ):
        super().__init__(handler)
        self.workflow_client = workflow_client
        self.api_token = api_token
        self.server: Optional[Server] = None

        if not api_token:
            logger.warning("No API token configured, uploads and deletes are open")

        self.app = FastAPI(lifespan=lifespan) if lifespan else FastAPI()
        self.photos_router = APIRouter()
        self.workflow_router = APIRouter()

        self.app.add_exception_handler(PhotoPipelineError, pipeline_error_handler)
        self.app.add_exception_handler(ValueError, value_error_handler)
        self.app.add_exception_handler(
            status.HTTP_500_INTERNAL_SERVER_ERROR, internal_server_error_handler
        )

        self.app.add_middleware(RequestSizeLimitMiddleware, max_bytes=max_upload_bytes)
        self.app.add_middleware(LogMiddleware)

        self.register_routers()

    def authorize(self, request: Request) -> None:
        """Require ``Authorization: Bearer <api_token>`` when a token is configured."""
        if not self.api_token:
            return

        scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not hmac.compare_digest(
            credentials.strip().encode(), self.api_token.encode()
        ):
            raise AuthorizationError("Missing or invalid bearer token")

    def register_routers(self):
        """Register routes and include the routers.

        - Server router (/server)
        - Photos router (/photos)
        - Workflow router (/workflows/v1)
        """
        self.register_routes()

        self.app.include_router(get_server_router())
        self.app.include_router(self.photos_router, prefix="/photos")
        self.app.include_router(self.workflow_router, prefix="/workflows/v1")

    def register_routes(self):
        authorized = [Depends(self.authorize)]

        self.photos_router.add_api_route(
            "",
            self.upload_photos,
            methods=["POST"],
            response_model=UploadResponse,
            status_code=status.HTTP_202_ACCEPTED,
            dependencies=authorized,
        )
        self.photos_router.add_api_route(
            "",
            self.list_photos,
            methods=["GET"],
            response_model=PhotoListResponse,
        )
        self.photos_router.add_api_route(
            "/{photo_id}",
            self.get_photo,
            methods=["GET"],
            response_model=PhotoDetailResponse,
        )
        self.photos_router.add_api_route(
            "/{photo_id}/content",
            self.get_photo_content,
            methods=["GET"],
            response_class=Response,
        )
        self.photos_router.add_api_route(
            "/{photo_id}",
            self.delete_photo,
            methods=["DELETE"],
            response_model=DeletePhotoResponse,
            dependencies=authorized,
        )
        self.workflow_router.add_api_route(
            "/status/{workflow_id}",
            self.get_workflow_run_status,
            methods=["GET"],
            response_model=WorkflowStatusResponse,
        )

    async def upload_photos(self, photo: List[UploadFile] = File(...)) -> JSONResponse:
        """Accept one or more ``photo`` parts; each is processed independently."""
        results = await self.handler.upload_photos(photo)
        failed = [result for result in results if not result.success]

        response = UploadResponse(
            success=not failed,
            message=(
                f"{len(results)} photo(s) accepted for processing"
                if not failed
                else f"{len(failed)} of {len(results)} photo(s) could not be accepted"
            ),
            data=results,
        )
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED
            if not failed
            else status.HTTP_207_MULTI_STATUS,
            content=response.model_dump(mode="json"),
        )

    async def list_photos(self) -> PhotoListResponse:
        photos = await self.handler.list_photos()
        return PhotoListResponse(
            success=True,
            data=[PhotoResponse.model_validate(photo) for photo in photos],
        )

    async def get_photo(self, photo_id: str) -> PhotoDetailResponse:
        photo = await self.handler.get_photo(photo_id)
        return PhotoDetailResponse(success=True, data=PhotoResponse.model_validate(photo))

    async def get_photo_content(self, photo_id: str, quality: str = "original") -> Response:
        content, content_type = await self.handler.get_photo_content(photo_id, quality)
        return Response(content=content, media_type=content_type)

    async def delete_photo(self, photo_id: str) -> DeletePhotoResponse:
        await self.handler.delete_photo(photo_id)
        return DeletePhotoResponse(success=True, message=f"Photo {photo_id} deleted")

    async def get_workflow_run_status(
        self, workflow_id: str, run_id: Optional[str] = None
    ) -> WorkflowStatusResponse:
        if not self.workflow_client:
            raise PhotoPipelineError(
                "Workflow client not initialized",
                WORKFLOW_ERRORS["WORKFLOW_CLIENT_NOT_LOADED_ERROR"],
            )

        workflow_status = await self.workflow_client.get_workflow_run_status(
            workflow_id, run_id
        )
        return WorkflowStatusResponse(
            success=True,
            message="Workflow status fetched successfully",
            data=workflow_status,
        )

    async def start(self, host: str = APP_HOST, port: int = APP_PORT) -> None:
        """Serve the application until :meth:`stop` is called."""
        logger.info(f"Starting application on {host}:{port}")
        self.server = Server(
            Config(
                app=self.app,
                host=host,
                port=port,
            )
        )
        await self.server.serve()

    async def stop(self) -> None:
        if self.server:
            self.server.should_exit = True

"""Process entry point wiring every component of the photo pipeline.

:class:`PhotoApplication` builds the services once and hands them to the
activities, handler, worker and server explicitly. ``init`` connects and
prepares them; ``teardown`` releases them in reverse order.
"""

import asyncio
from typing import Optional

from photo_pipeline.activities.photos import PhotoActivities
from photo_pipeline.clients.utils import get_workflow_client
from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.config import PipelineSettings, get_settings
from photo_pipeline.constants import (
    APP_HOST,
    APP_PORT,
    APPLICATION_MODE,
    APPLICATION_NAME,
    MAX_CONCURRENT_ACTIVITIES,
    PHOTOS_API_TOKEN,
    ApplicationMode,
)
from photo_pipeline.handlers.photos import PhotoHandler
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.server.fastapi import APIServer
from photo_pipeline.services.catalog import PhotoCatalog
from photo_pipeline.services.database import get_engine
from photo_pipeline.services.objectstore import ObjectStore, get_object_store
from photo_pipeline.worker import Worker
from photo_pipeline.workflows.photo_upload import PhotoUploadWorkflow

logger = get_logger(__name__)


class PhotoApplication:
    """Owns the lifecycle of the worker and the HTTP server.

    Every dependency can be injected; anything left out is built from the
    environment.
    """

    def __init__(
        self,
        name: str = APPLICATION_NAME,
        settings: Optional[PipelineSettings] = None,
        object_store: Optional[ObjectStore] = None,
        catalog: Optional[PhotoCatalog] = None,
        workflow_client: Optional[WorkflowClient] = None,
        api_token: str = PHOTOS_API_TOKEN,
    ):
        self.application_name = name
        self.settings = settings or get_settings()
        self.object_store = object_store or get_object_store()
        self.catalog = catalog or PhotoCatalog(get_engine())
        self.workflow_client = workflow_client or get_workflow_client(
            application_name=name
        )
        self.api_token = api_token

        self.activities = PhotoActivities(self.object_store, self.catalog, self.settings)
        self.handler = PhotoHandler(
            self.object_store, self.catalog, self.workflow_client, self.settings
        )
        self.worker: Optional[Worker] = None
        self.server: Optional[APIServer] = None

    async def init(self) -> None:
        """Connect the workflow client, prepare the catalog and build worker and server."""
        await self.workflow_client.load()
        await self.handler.load()

        self.worker = Worker(
            workflow_client=self.workflow_client,
            workflow_activities=PhotoUploadWorkflow.get_activities(self.activities),
            workflow_classes=[PhotoUploadWorkflow],
            max_concurrent_activities=MAX_CONCURRENT_ACTIVITIES,
        )
        self.server = APIServer(
            handler=self.handler,
            workflow_client=self.workflow_client,
            api_token=self.api_token,
            max_upload_bytes=self.settings.max_upload_bytes,
        )
        logger.info(f"Application {self.application_name} initialized")

    async def teardown(self) -> None:
        if self.server:
            await self.server.stop()
        if self.worker:
            await self.worker.stop()
        await self.workflow_client.close()
        self.catalog.dispose()
        logger.info(f"Application {self.application_name} stopped")

    async def start_worker(self) -> None:
        if self.worker is None:
            raise ValueError("Worker not initialized")
        await self.worker.start(daemon=False)

    async def start_server(self, host: str = APP_HOST, port: int = APP_PORT) -> None:
        if self.server is None:
            raise ValueError("Server not initialized")
        await self.server.start(host=host, port=port)

    async def run(self, mode: ApplicationMode = APPLICATION_MODE) -> None:
        """Run the worker, the server or both until they stop."""
        await self.init()
        try:
            if mode is ApplicationMode.WORKER:
                await self.start_worker()
            elif mode is ApplicationMode.SERVER:
                await self.start_server()
            else:
                async with asyncio.TaskGroup() as tg:
                    tg.create_task(self.start_worker())
                    tg.create_task(self.start_server())
        finally:
            await self.teardown()


async def main() -> None:
    application = PhotoApplication()
    await application.run(APPLICATION_MODE)


def run() -> None:
    asyncio.run(main())

"""Global test configuration and fixtures."""

from unittest.mock import AsyncMock, Mock

import pytest

from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.config import PipelineSettings
from photo_pipeline.services.catalog import PhotoCatalog
from photo_pipeline.services.database import create_catalog_engine
from photo_pipeline.services.objectstore import LocalObjectStore
from tests.factories import camera_exif, make_jpeg


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings(photos_bucket="photos")


@pytest.fixture
def object_store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(str(tmp_path / "storage"))


@pytest.fixture
def catalog(tmp_path):
    catalog = PhotoCatalog(create_catalog_engine(f"sqlite:///{tmp_path / 'photos.db'}"))
    catalog.create_schema()
    yield catalog
    catalog.dispose()


@pytest.fixture
def workflow_client() -> Mock:
    workflow_client = Mock(spec=WorkflowClient)
    workflow_client.worker_task_queue = "test_queue"

    async def start_workflow(workflow_args, workflow_class):
        return {
            "workflow_id": workflow_args["workflow_id"],
            "run_id": "test_run_id",
            "already_started": False,
        }

    workflow_client.start_workflow = AsyncMock(side_effect=start_workflow)
    workflow_client.get_workflow_run_status = AsyncMock()
    workflow_client.load = AsyncMock()
    workflow_client.close = AsyncMock()
    return workflow_client


@pytest.fixture
def jpeg_with_exif() -> bytes:
    return make_jpeg(exif=camera_exif())

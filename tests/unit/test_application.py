from unittest.mock import AsyncMock, patch

import pytest

from photo_pipeline.application import PhotoApplication
from photo_pipeline.constants import ApplicationMode
from photo_pipeline.server.fastapi import APIServer
from photo_pipeline.worker import Worker
from photo_pipeline.workflows.photo_upload import PhotoUploadWorkflow


@pytest.fixture
def application(settings, object_store, catalog, workflow_client) -> PhotoApplication:
    return PhotoApplication(
        name="test_app",
        settings=settings,
        object_store=object_store,
        catalog=catalog,
        workflow_client=workflow_client,
        api_token="token",
    )


async def test_init_builds_worker_and_server(application, workflow_client):
    await application.init()

    workflow_client.load.assert_awaited_once()
    assert isinstance(application.worker, Worker)
    assert application.worker.workflow_classes == [PhotoUploadWorkflow]
    assert len(application.worker.workflow_activities) == 3
    assert isinstance(application.server, APIServer)
    assert application.server.api_token == "token"


async def test_start_before_init(application):
    with pytest.raises(ValueError, match="Worker not initialized"):
        await application.start_worker()
    with pytest.raises(ValueError, match="Server not initialized"):
        await application.start_server()


async def test_teardown(application, workflow_client):
    await application.init()
    application.worker.stop = AsyncMock()
    application.server.stop = AsyncMock()

    with patch.object(application.catalog, "dispose") as dispose:
        await application.teardown()

    application.server.stop.assert_awaited_once()
    application.worker.stop.assert_awaited_once()
    workflow_client.close.assert_awaited_once()
    dispose.assert_called_once()


@pytest.mark.parametrize(
    "mode, worker_runs, server_runs",
    [
        (ApplicationMode.WORKER, True, False),
        (ApplicationMode.SERVER, False, True),
        (ApplicationMode.LOCAL, True, True),
    ],
)
async def test_run_modes(application, mode, worker_runs, server_runs):
    with patch.object(PhotoApplication, "start_worker", AsyncMock()) as start_worker, patch.object(
        PhotoApplication, "start_server", AsyncMock()
    ) as start_server, patch.object(PhotoApplication, "teardown", AsyncMock()) as teardown:
        await application.run(mode)

    assert start_worker.await_count == int(worker_runs)
    assert start_server.await_count == int(server_runs)
    teardown.assert_awaited_once()


async def test_run_tears_down_on_failure(application):
    with patch.object(
        PhotoApplication, "start_worker", AsyncMock(side_effect=RuntimeError("boom"))
    ), patch.object(PhotoApplication, "teardown", AsyncMock()) as teardown:
        with pytest.raises(RuntimeError):
            await application.run(ApplicationMode.WORKER)

    teardown.assert_awaited_once()

from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest

from photo_pipeline.activities.common.models import CatalogEntry
from photo_pipeline.common.exceptions import PhotoNotFoundError, PhotoPipelineError
from photo_pipeline.handlers.photos import (
    PhotoHandler,
    PhotoQuality,
    original_object_name,
)
from photo_pipeline.workflows.photo_upload import PhotoUploadWorkflow
from tests.factories import make_jpeg


class FakeUpload:
    def __init__(
        self, filename: Optional[str], content: bytes, content_type: Optional[str] = "image/jpeg"
    ):
        self.filename = filename
        self.content_type = content_type
        self.content = content

    async def read(self, size: int = -1) -> bytes:
        return self.content


@pytest.fixture
def handler(object_store, catalog, workflow_client, settings) -> PhotoHandler:
    return PhotoHandler(object_store, catalog, workflow_client, settings)


async def catalogued_photo(handler: PhotoHandler, photo_id: str = "p1") -> None:
    handler.catalog.upsert_photo(
        CatalogEntry(
            photo_id=photo_id,
            original_name="beach.jpg",
            width=640,
            height=480,
            blur_hash="LEHV6nWB2yk8pyo0adR*.7kCMdnj",
        )
    )
    await handler.object_store.put_item("photos", photo_id, "original.jpg", b"orig", 4)
    await handler.object_store.put_item("photos", photo_id, "small.jpg", b"small", 5)


class TestOriginalObjectName:
    @pytest.mark.parametrize(
        "filename, content_type, expected",
        [
            ("IMG_0001.JPG", "image/jpeg", "original.jpg"),
            ("scan.png", None, "original.png"),
            ("upload", "image/png", "original.png"),
            ("upload", None, "original"),
            ("archive.tar.HEIC", "image/heic", "original.heic"),
        ],
    )
    def test_names(self, filename, content_type, expected):
        assert original_object_name(filename, content_type) == expected


class TestUpload:
    async def test_stores_original_and_starts_workflow(
        self, handler, object_store, workflow_client
    ):
        content = make_jpeg(64, 48)

        [result] = await handler.upload_photos([FakeUpload("IMG_0001.JPG", content)])

        assert result.success
        assert result.filename == "IMG_0001.JPG"
        assert result.workflow_id == f"photo_upload_{result.photo_id}"
        assert result.run_id == "test_run_id"
        assert result.already_started is False

        item = await object_store.get_item("photos", result.photo_id, "original.jpg")
        assert await object_store.get_item_content(item) == content

        workflow_client.start_workflow.assert_awaited_once_with(
            {
                "workflow_id": result.workflow_id,
                "photo_id": result.photo_id,
                "original_object": "original.jpg",
                "original_name": "IMG_0001.JPG",
            },
            workflow_class=PhotoUploadWorkflow,
        )

    async def test_every_file_gets_its_own_photo_id(self, handler):
        results = await handler.upload_photos(
            [FakeUpload("a.jpg", b"a"), FakeUpload("b.jpg", b"b")]
        )

        assert [r.filename for r in results] == ["a.jpg", "b.jpg"]
        assert len({r.photo_id for r in results}) == 2

    async def test_failure_does_not_affect_siblings(self, handler, workflow_client):
        results = await handler.upload_photos(
            [FakeUpload("empty.jpg", b""), FakeUpload("good.jpg", b"jpeg")]
        )

        assert not results[0].success
        assert "empty" in results[0].error
        assert results[0].photo_id is None
        assert results[1].success
        assert workflow_client.start_workflow.await_count == 1

    async def test_workflow_start_failure_is_reported_per_file(
        self, handler, workflow_client
    ):
        async def start_workflow(workflow_args, workflow_class):
            if workflow_args["original_name"] == "bad.jpg":
                raise PhotoPipelineError("Temporal unavailable")
            return {"workflow_id": workflow_args["workflow_id"], "run_id": "r"}

        workflow_client.start_workflow.side_effect = start_workflow

        results = await handler.upload_photos(
            [FakeUpload("bad.jpg", b"x"), FakeUpload("good.jpg", b"y")]
        )

        assert [r.success for r in results] == [False, True]
        assert "Temporal unavailable" in results[0].error

    async def test_missing_filename(self, handler):
        [result] = await handler.upload_photos([FakeUpload(None, b"x", "image/png")])

        assert result.filename == "upload"
        assert result.success

    async def test_load_creates_schema(self, handler):
        with patch.object(handler.catalog, "create_schema") as create_schema:
            await handler.load()
        create_schema.assert_called_once()


class TestRead:
    async def test_get_photo(self, handler):
        await catalogued_photo(handler)

        photo = await handler.get_photo("p1")
        assert photo.name == "beach.jpg"

    async def test_get_missing_photo(self, handler):
        with pytest.raises(PhotoNotFoundError):
            await handler.get_photo("nope")

    async def test_list_photos(self, handler):
        await catalogued_photo(handler, "p1")
        await catalogued_photo(handler, "p2")

        assert {photo.id for photo in await handler.list_photos()} == {"p1", "p2"}

    async def test_original_content(self, handler):
        await catalogued_photo(handler)

        assert await handler.get_photo_content("p1") == (b"orig", "image/jpeg")

    async def test_original_keeps_uploaded_content_type(self, handler):
        [result] = await handler.upload_photos(
            [FakeUpload("shot.jpeg-large", b"orig", "image/jpeg")]
        )
        handler.catalog.upsert_photo(
            CatalogEntry(
                photo_id=result.photo_id,
                original_name="shot.jpeg-large",
                width=640,
                height=480,
                blur_hash="LEHV6nWB2yk8pyo0adR*.7kCMdnj",
            )
        )

        content = await handler.get_photo_content(result.photo_id, "original")

        assert content == (b"orig", "image/jpeg")

    async def test_preview_content(self, handler):
        await catalogued_photo(handler)

        content = await handler.get_photo_content("p1", PhotoQuality.SMALL)
        assert content == (b"small", "image/jpeg")
        assert await handler.get_photo_content("p1", "small") == content

    async def test_missing_preview(self, handler):
        await catalogued_photo(handler)

        with pytest.raises(PhotoNotFoundError, match="large preview"):
            await handler.get_photo_content("p1", "large")

    async def test_uncatalogued_photo_content(self, handler, object_store):
        await object_store.put_item("photos", "p1", "original.jpg", b"orig", 4)

        with pytest.raises(PhotoNotFoundError):
            await handler.get_photo_content("p1")

    async def test_unknown_quality(self, handler):
        with pytest.raises(ValueError):
            await handler.get_photo_content("p1", "huge")


class TestDelete:
    async def test_deletes_objects_and_row(self, handler, object_store, catalog):
        await catalogued_photo(handler)

        await handler.delete_photo("p1")

        assert await object_store.list_items("photos", "p1") == []
        assert catalog.photo_exists("p1") is False

    async def test_row_survives_failed_object_delete(self, handler, catalog):
        await catalogued_photo(handler)
        handler.object_store.delete_folder = AsyncMock(side_effect=OSError("disk"))

        with pytest.raises(OSError):
            await handler.delete_photo("p1")

        assert catalog.photo_exists("p1") is True

    async def test_missing_objects_still_delete_row(self, handler, object_store, catalog):
        await catalogued_photo(handler)
        await object_store.delete_folder("photos", "p1")

        await handler.delete_photo("p1")

        assert catalog.photo_exists("p1") is False

    async def test_delete_missing_photo(self, handler, object_store):
        await object_store.put_item("photos", "p1", "original.jpg", b"orig", 4)

        with pytest.raises(PhotoNotFoundError):
            await handler.delete_photo("p1")

        assert len(await object_store.list_items("photos", "p1")) == 1

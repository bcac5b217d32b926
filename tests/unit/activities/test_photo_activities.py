from io import BytesIO

import pytest
from PIL import Image
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from photo_pipeline.activities.photos import (
    ACTIVITY_METHODS,
    ActivityKind,
    PhotoActivities,
)
from photo_pipeline.common.exceptions import ObjectNotFoundError
from tests.factories import make_png


@pytest.fixture
def activities(object_store, catalog, settings) -> PhotoActivities:
    return PhotoActivities(object_store, catalog, settings)


@pytest.fixture
def env() -> ActivityEnvironment:
    return ActivityEnvironment()


async def store_original(object_store, content: bytes, name: str = "original.jpg"):
    await object_store.put_item("photos", "p1", name, content, len(content))


def preview_payload(size_name: str = "small", width: int = 300) -> dict:
    return {
        "photo_id": "p1",
        "original_object": "original.jpg",
        "size_name": size_name,
        "width": width,
    }


class TestGeneratePreview:
    async def test_writes_preview(self, env, activities, object_store, jpeg_with_exif):
        await store_original(object_store, jpeg_with_exif)

        result = await env.run(activities.generate_preview, preview_payload())

        assert result == {
            "photo_id": "p1",
            "size_name": "small",
            "width": 300,
            "height": 225,
            "object_name": "small.jpg",
            "size": result["size"],
        }
        item = await object_store.get_item("photos", "p1", "small.jpg")
        assert item.size == result["size"]
        preview = Image.open(BytesIO(await object_store.get_item_content(item)))
        assert preview.size == (300, 225)

    async def test_rerun_overwrites_same_object(
        self, env, activities, object_store, jpeg_with_exif
    ):
        await store_original(object_store, jpeg_with_exif)

        first = await env.run(activities.generate_preview, preview_payload())
        second = await env.run(activities.generate_preview, preview_payload())

        assert first == second
        names = [item.name for item in await object_store.list_items("photos", "p1")]
        assert names == ["original.jpg", "small.jpg"]

    async def test_png_original(self, env, activities, object_store):
        await store_original(object_store, make_png(320, 200), "original.png")
        payload = {**preview_payload("large", 1920), "original_object": "original.png"}

        result = await env.run(activities.generate_preview, payload)

        assert (result["width"], result["height"]) == (1920, 1200)
        assert result["object_name"] == "large.jpg"

    async def test_undecodable_original_is_not_retried(
        self, env, activities, object_store
    ):
        await store_original(object_store, b"this is not a jpeg")

        with pytest.raises(ApplicationError) as exc_info:
            await env.run(activities.generate_preview, preview_payload())

        assert exc_info.value.non_retryable is True
        assert exc_info.value.type == "InvalidImageError"
        assert [i.name for i in await object_store.list_items("photos", "p1")] == [
            "original.jpg"
        ]

    async def test_missing_original(self, env, activities):
        with pytest.raises(ObjectNotFoundError):
            await env.run(activities.generate_preview, preview_payload())


class TestExtractMetadata:
    async def test_extracts_everything(
        self, env, activities, object_store, jpeg_with_exif
    ):
        await store_original(object_store, jpeg_with_exif)

        metadata = await env.run(
            activities.extract_metadata,
            {"photo_id": "p1", "original_object": "original.jpg"},
        )

        assert metadata["width"] == 640
        assert metadata["height"] == 480
        assert len(metadata["blur_hash"]) == 28
        assert metadata["lens"] == "Canon EF24-70mm f/2.8L II USM"
        assert metadata["aperture"] == "f/4.0"
        assert metadata["shutter_speed"] == "1/8"
        assert metadata["iso"] == "400"
        assert metadata["focal_length"] == "35mm"
        assert metadata["focal_length_35mm"] == "50mm"

    async def test_image_without_exif(self, env, activities, object_store):
        await store_original(object_store, make_png(), "original.png")

        metadata = await env.run(
            activities.extract_metadata,
            {"photo_id": "p1", "original_object": "original.png"},
        )

        assert (metadata["width"], metadata["height"]) == (320, 200)
        assert metadata["lens"] is None
        assert metadata["iso"] is None

    async def test_writes_nothing(self, env, activities, object_store, jpeg_with_exif):
        await store_original(object_store, jpeg_with_exif)

        await env.run(
            activities.extract_metadata,
            {"photo_id": "p1", "original_object": "original.jpg"},
        )

        assert len(await object_store.list_items("photos", "p1")) == 1

    async def test_undecodable_original_is_not_retried(
        self, env, activities, object_store
    ):
        await store_original(object_store, b"\x00" * 64)

        with pytest.raises(ApplicationError) as exc_info:
            await env.run(
                activities.extract_metadata,
                {"photo_id": "p1", "original_object": "original.jpg"},
            )

        assert exc_info.value.non_retryable is True


class TestWriteCatalogEntry:
    async def test_insert_then_update(self, env, activities, catalog):
        payload = {
            "photo_id": "p1",
            "original_name": "IMG_0001.JPG",
            "width": 640,
            "height": 480,
            "blur_hash": "LEHV6nWB2yk8pyo0adR*.7kCMdnj",
        }

        first = await env.run(activities.write_catalog_entry, payload)
        second = await env.run(activities.write_catalog_entry, payload)

        assert first == {"photo_id": "p1", "created": True}
        assert second == {"photo_id": "p1", "created": False}
        assert catalog.get_photo("p1").name == "IMG_0001.JPG"
        assert len(catalog.list_photos()) == 1


def test_every_activity_kind_has_a_method(activities):
    assert set(ACTIVITY_METHODS) == set(ActivityKind)
    registered = {fn.__name__ for fn in activities.get_activities()}
    assert registered == {method.__name__ for method in ACTIVITY_METHODS.values()}

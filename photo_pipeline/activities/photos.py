"""Activities of the photo upload workflow.

Each :class:`ActivityKind` maps to exactly one typed method on
:class:`PhotoActivities`. Preview and metadata activities only read the
original and overwrite their own outputs, so they are safe to retry; the
catalog activity is the only writer of the catalog row.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Sequence

from PIL import Image
from temporalio import activity
from temporalio.exceptions import ApplicationError

from photo_pipeline.activities import ActivitiesInterface
from photo_pipeline.activities.common.models import (
    CatalogEntry,
    CatalogWriteResult,
    MetadataRequest,
    PhotoMetadata,
    PreviewRequest,
    PreviewResult,
)
from photo_pipeline.activities.common.utils import auto_heartbeater
from photo_pipeline.common.exceptions import InvalidImageError
from photo_pipeline.config import PipelineSettings
from photo_pipeline.imaging.exif import extract_camera_metadata
from photo_pipeline.imaging.placeholder import compute_blur_hash
from photo_pipeline.imaging.previews import build_preview, decode_image
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.services.catalog import PhotoCatalog
from photo_pipeline.services.objectstore import ObjectStore

logger = get_logger(__name__)

PREVIEW_CONTENT_TYPE = "image/jpeg"


class ActivityKind(str, Enum):
    GENERATE_PREVIEW = "generate_preview"
    EXTRACT_METADATA = "extract_metadata"
    WRITE_CATALOG_ENTRY = "write_catalog_entry"


def non_retryable(e: InvalidImageError) -> ApplicationError:
    """Wrap an undecodable-image failure so Temporal stops retrying it."""
    return ApplicationError(
        str(e), type=InvalidImageError.__name__, non_retryable=True
    )


class PhotoActivities(ActivitiesInterface):
    def __init__(
        self,
        object_store: ObjectStore,
        catalog: PhotoCatalog,
        settings: PipelineSettings,
    ):
        self.object_store = object_store
        self.catalog = catalog
        self.settings = settings

    async def _read_original(self, photo_id: str, original_object: str) -> bytes:
        item = await self.object_store.get_item(
            self.settings.photos_bucket, photo_id, original_object
        )
        return await self.object_store.get_item_content(item)

    def get_activities(self) -> Sequence[Callable[..., Any]]:
        return [
            self.generate_preview,
            self.extract_metadata,
            self.write_catalog_entry,
        ]

    @activity.defn(name=ActivityKind.GENERATE_PREVIEW.value)
    @auto_heartbeater
    async def generate_preview(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Render one JPEG preview of the original at the requested width.

        The preview is written to ``<size_name>.jpg`` in the photo's folder,
        replacing whatever an earlier attempt left there.
        """
        request = PreviewRequest.model_validate(payload)
        logger.info(
            f"Generating {request.size_name} preview ({request.width}px) for photo {request.photo_id}"
        )

        content = await self._read_original(request.photo_id, request.original_object)
        try:
            preview, width, height = await asyncio.to_thread(
                build_preview, content, request.width, self.settings.jpeg_quality
            )
        except InvalidImageError as e:
            logger.error(f"Photo {request.photo_id} cannot be decoded: {e}")
            raise non_retryable(e) from e

        object_name = f"{request.size_name}.jpg"
        await self.object_store.put_item(
            self.settings.photos_bucket,
            request.photo_id,
            object_name,
            preview,
            len(preview),
            PREVIEW_CONTENT_TYPE,
        )

        return PreviewResult(
            photo_id=request.photo_id,
            size_name=request.size_name,
            width=width,
            height=height,
            object_name=object_name,
            size=len(preview),
        ).model_dump()

    def _analyze(self, content: bytes, photo_id: str) -> PhotoMetadata:
        image: Image.Image = decode_image(content)
        blur_hash = compute_blur_hash(
            image,
            components_x=self.settings.blur_hash_components_x,
            components_y=self.settings.blur_hash_components_y,
            sample_width=self.settings.blur_hash_sample_width,
        )
        camera = extract_camera_metadata(image, photo_id=photo_id)
        width, height = image.size
        return PhotoMetadata(
            width=width, height=height, blur_hash=blur_hash, **camera.to_dict()
        )

    @activity.defn(name=ActivityKind.EXTRACT_METADATA.value)
    @auto_heartbeater
    async def extract_metadata(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Compute dimensions, blur hash and camera metadata of the original.

        Nothing is persisted here; the result travels to the catalog step.
        """
        request = MetadataRequest.model_validate(payload)
        logger.info(f"Extracting metadata for photo {request.photo_id}")

        content = await self._read_original(request.photo_id, request.original_object)
        try:
            metadata = await asyncio.to_thread(self._analyze, content, request.photo_id)
        except InvalidImageError as e:
            logger.error(f"Photo {request.photo_id} cannot be decoded: {e}")
            raise non_retryable(e) from e

        return metadata.model_dump()

    @activity.defn(name=ActivityKind.WRITE_CATALOG_ENTRY.value)
    @auto_heartbeater
    async def write_catalog_entry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        entry = CatalogEntry.model_validate(payload)
        created = await asyncio.to_thread(self.catalog.upsert_photo, entry)
        return CatalogWriteResult(photo_id=entry.photo_id, created=created).model_dump()


ACTIVITY_METHODS: Dict[ActivityKind, Callable[..., Any]] = {
    ActivityKind.GENERATE_PREVIEW: PhotoActivities.generate_preview,
    ActivityKind.EXTRACT_METADATA: PhotoActivities.extract_metadata,
    ActivityKind.WRITE_CATALOG_ENTRY: PhotoActivities.write_catalog_entry,
}

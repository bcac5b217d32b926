"""Upload, retrieval and deletion of photos.

The handler owns the synchronous side of the pipeline: it stores originals,
starts one workflow per photo and serves catalogued photos back. Everything
it talks to is passed in by the application.
"""

import asyncio
import mimetypes
import uuid
from enum import Enum
from pathlib import PurePath
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel

from photo_pipeline.activities.common.models import PhotoUploadArgs
from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.common.exceptions import (
    ObjectNotFoundError,
    PhotoNotFoundError,
    UploadError,
)
from photo_pipeline.config import PipelineSettings
from photo_pipeline.constants import PHOTO_UPLOAD_WORKFLOW_PREFIX
from photo_pipeline.handlers import HandlerInterface
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.services.catalog import PhotoCatalog
from photo_pipeline.services.models import Photo
from photo_pipeline.services.objectstore import ObjectStore, StoredObject
from photo_pipeline.workflows.photo_upload import PhotoUploadWorkflow

logger = get_logger(__name__)

ORIGINAL_OBJECT_STEM = "original"
PREVIEW_CONTENT_TYPE = "image/jpeg"


class PhotoQuality(str, Enum):
    ORIGINAL = "original"
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"


class IncomingFile(Protocol):
    """What the handler needs from an uploaded file (FastAPI's UploadFile fits)."""

    filename: Optional[str]
    content_type: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...


class UploadResult(BaseModel):
    filename: str
    photo_id: Optional[str] = None
    workflow_id: Optional[str] = None
    run_id: Optional[str] = None
    already_started: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def original_object_name(filename: str, content_type: Optional[str]) -> str:
    """Name of the stored original: ``original`` plus the best known extension.

    >>> original_object_name("IMG_0001.JPG", "image/jpeg")
    'original.jpg'
    >>> original_object_name("upload", "image/png")
    'original.png'
    """
    extension = PurePath(filename).suffix.lower()
    if not extension and content_type:
        extension = mimetypes.guess_extension(content_type) or ""
    return f"{ORIGINAL_OBJECT_STEM}{extension}"


class PhotoHandler(HandlerInterface):
    def __init__(
        self,
        object_store: ObjectStore,
        catalog: PhotoCatalog,
        workflow_client: WorkflowClient,
        settings: PipelineSettings,
    ):
        self.object_store = object_store
        self.catalog = catalog
        self.workflow_client = workflow_client
        self.settings = settings

    @property
    def bucket(self) -> str:
        return self.settings.photos_bucket

    async def load(self) -> None:
        await asyncio.to_thread(self.catalog.create_schema)

    async def ingest_photo(self, file: IncomingFile) -> UploadResult:
        """Store one original and start its upload workflow."""
        filename = file.filename or "upload"
        content = await file.read()
        if not content:
            raise UploadError(f"Uploaded file {filename} is empty")

        photo_id = str(uuid.uuid4())
        object_name = original_object_name(filename, file.content_type)
        await self.object_store.put_item(
            self.bucket,
            photo_id,
            object_name,
            content,
            len(content),
            file.content_type,
        )
        logger.info(
            f"Stored original {filename} ({len(content)} bytes) as {self.bucket}/{photo_id}/{object_name}"
        )

        args = PhotoUploadArgs(
            workflow_id=f"{PHOTO_UPLOAD_WORKFLOW_PREFIX}{photo_id}",
            photo_id=photo_id,
            original_object=object_name,
            original_name=filename,
        )
        workflow_data = await self.workflow_client.start_workflow(
            args.model_dump(), workflow_class=PhotoUploadWorkflow
        )
        return UploadResult(
            filename=filename,
            photo_id=photo_id,
            workflow_id=workflow_data["workflow_id"],
            run_id=workflow_data.get("run_id"),
            already_started=workflow_data.get("already_started", False),
        )

    async def upload_photos(self, files: Sequence[IncomingFile]) -> List[UploadResult]:
        """Ingest every file independently; one failure never affects its siblings.

        Returns one :class:`UploadResult` per file, in request order.
        """
        outcomes = await asyncio.gather(
            *(self.ingest_photo(file) for file in files), return_exceptions=True
        )

        results = []
        for file, outcome in zip(files, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Failed to ingest {file.filename}: {outcome}", exc_info=outcome
                )
                results.append(
                    UploadResult(filename=file.filename or "upload", error=str(outcome))
                )
            else:
                results.append(outcome)
        return results

    async def get_photo(self, photo_id: str) -> Photo:
        photo = await asyncio.to_thread(self.catalog.get_photo, photo_id)
        if photo is None:
            raise PhotoNotFoundError(photo_id)
        return photo

    async def list_photos(self) -> List[Photo]:
        return await asyncio.to_thread(self.catalog.list_photos)

    async def _find_original(self, photo_id: str) -> StoredObject:
        items = await self.object_store.list_items(self.bucket, photo_id)
        for item in items:
            if PurePath(item.name).stem == ORIGINAL_OBJECT_STEM:
                return item
        raise PhotoNotFoundError(photo_id, f"Original of photo {photo_id} is missing")

    async def get_photo_content(
        self, photo_id: str, quality: Any = PhotoQuality.ORIGINAL
    ) -> Tuple[bytes, str]:
        """Return ``(content, content_type)`` of a photo at the given quality.

        Raises:
            ValueError: If ``quality`` is not one of original, large, medium, small.
            PhotoNotFoundError: If the photo is not catalogued or its object is missing.
        """
        quality = PhotoQuality(quality)
        await self.get_photo(photo_id)

        if quality is PhotoQuality.ORIGINAL:
            item = await self._find_original(photo_id)
            content_type = item.content_type
        else:
            try:
                item = await self.object_store.get_item(
                    self.bucket, photo_id, f"{quality.value}.jpg"
                )
            except ObjectNotFoundError as e:
                raise PhotoNotFoundError(
                    photo_id, f"{quality.value} preview of photo {photo_id} is missing"
                ) from e
            content_type = PREVIEW_CONTENT_TYPE

        content = await self.object_store.get_item_content(item)
        return content, content_type

    async def delete_photo(self, photo_id: str) -> None:
        """Delete the stored objects first, then the catalog row."""
        exists = await asyncio.to_thread(self.catalog.photo_exists, photo_id)
        if not exists:
            raise PhotoNotFoundError(photo_id)

        await self.object_store.delete_folder(self.bucket, photo_id)
        await asyncio.to_thread(self.catalog.delete_photo, photo_id)
        logger.info(f"Deleted photo {photo_id}")

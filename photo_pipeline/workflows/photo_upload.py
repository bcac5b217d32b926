"""Workflow that turns one stored original into a catalogued photo.

The three preview renditions run concurrently; metadata extraction and the
catalog write follow strictly afterwards, so a catalog row only ever exists
for a photo whose previews are all in place.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Tuple, Type

from temporalio import workflow
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from photo_pipeline.activities.common.models import (
        CatalogEntry,
        MetadataRequest,
        PhotoUploadArgs,
        PreviewRequest,
    )
    from photo_pipeline.activities.photos import (
        ACTIVITY_METHODS,
        ActivityKind,
        PhotoActivities,
    )
    from photo_pipeline.observability.logger_adaptor import get_logger
    from photo_pipeline.workflows import WorkflowInterface

logger = get_logger(__name__)


class PhotoUploadState(str, Enum):
    STARTED = "started"
    PREVIEWS_PENDING = "previews_pending"
    METADATA_PENDING = "metadata_pending"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


@workflow.defn
class PhotoUploadWorkflow(WorkflowInterface[PhotoActivities]):
    """Generates previews, extracts metadata and writes the catalog row.

    Attributes:
        preview_sizes: ``(size_name, width)`` of every preview rendition.
    """

    activities_cls: Type[PhotoActivities] = PhotoActivities

    preview_sizes: Tuple[Tuple[str, int], ...] = (
        ("small", 300),
        ("medium", 768),
        ("large", 1920),
    )

    def __init__(self) -> None:
        self.state = PhotoUploadState.STARTED

    @workflow.query
    def get_state(self) -> str:
        return self.state.value

    async def run_activity(self, kind: ActivityKind, payload: Dict[str, Any]) -> Any:
        return await self.execute_activity(ACTIVITY_METHODS[kind], payload)

    async def generate_previews(self, args: PhotoUploadArgs) -> List[Dict[str, Any]]:
        """Fan out one preview activity per size and wait for all of them.

        Every preview settles before a failure propagates; the first failure
        in size order is raised.
        """
        outcomes = await asyncio.gather(
            *(
                self.run_activity(
                    ActivityKind.GENERATE_PREVIEW,
                    PreviewRequest(
                        photo_id=args.photo_id,
                        original_object=args.original_object,
                        size_name=size_name,
                        width=width,
                    ).model_dump(),
                )
                for size_name, width in self.preview_sizes
            ),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    @workflow.run
    async def run(self, workflow_args: Dict[str, Any]) -> Dict[str, Any]:
        args = PhotoUploadArgs.model_validate(workflow_args)
        logger.info(f"Starting photo upload workflow for photo {args.photo_id}")

        try:
            self.state = PhotoUploadState.PREVIEWS_PENDING
            previews = await self.generate_previews(args)

            self.state = PhotoUploadState.METADATA_PENDING
            metadata = await self.run_activity(
                ActivityKind.EXTRACT_METADATA,
                MetadataRequest(
                    photo_id=args.photo_id, original_object=args.original_object
                ).model_dump(),
            )

            self.state = PhotoUploadState.PERSISTING
            entry = CatalogEntry(
                photo_id=args.photo_id,
                original_name=args.original_name,
                **metadata,
            )
            written = await self.run_activity(
                ActivityKind.WRITE_CATALOG_ENTRY, entry.model_dump()
            )
        except ActivityError as e:
            self.state = PhotoUploadState.FAILED
            logger.error(
                f"Photo upload workflow for photo {args.photo_id} failed: {e}",
                exc_info=True,
            )
            raise ApplicationError(
                f"Processing photo {args.photo_id} failed: {e.cause or e}",
                type="PhotoUploadFailed",
                non_retryable=True,
            ) from e

        self.state = PhotoUploadState.COMPLETED
        logger.info(f"Photo upload workflow for photo {args.photo_id} completed")
        return {
            "photo_id": args.photo_id,
            "previews": previews,
            "metadata": metadata,
            "created": written["created"],
        }

"""Worker module for managing Temporal workers.

This module provides the Worker class that registers the photo activities and
workflows on the application's task queue and runs them.
"""

import asyncio
import threading
from typing import Any, List, Optional, Sequence

import uvloop
from temporalio.types import CallableType

from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.observability.logger_adaptor import get_logger

logger = get_logger(__name__)
asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())


class Worker:
    """Runs a Temporal worker for the registered workflows and activities.

    Attributes:
        workflow_client (WorkflowClient | None): Loaded workflow client.
        workflow_worker: The Temporal worker instance, once started.
        workflow_activities (Sequence[CallableType]): Activity callables.
        workflow_classes (List[Any]): Workflow classes.
        passthrough_modules (List[str]): Modules passed through the workflow sandbox.
        max_concurrent_activities (int | None): Cap on concurrent activity attempts.
    """

    def __init__(
        self,
        workflow_client: WorkflowClient | None = None,
        workflow_activities: Sequence[CallableType] = (),
        workflow_classes: Sequence[Any] = (),
        passthrough_modules: Sequence[str] = ("photo_pipeline", "PIL", "blurhash"),
        max_concurrent_activities: Optional[int] = None,
    ):
        self.workflow_client = workflow_client
        self.workflow_worker = None
        self.workflow_activities = list(workflow_activities)
        self.workflow_classes: List[Any] = list(workflow_classes)
        self.passthrough_modules: List[str] = list(passthrough_modules)
        self.max_concurrent_activities = max_concurrent_activities

    async def start(self, daemon: bool = True, *args: Any, **kwargs: Any) -> None:
        """Start the Temporal worker.

        With ``daemon=True`` the worker runs on its own event loop in a daemon
        thread and this call returns immediately; otherwise it runs until the
        worker shuts down.

        Raises:
            ValueError: If workflow_client is not set.
        """
        if daemon:
            worker_thread = threading.Thread(
                target=lambda: asyncio.run(self.start(daemon=False)), daemon=True
            )
            worker_thread.start()
            return

        if not self.workflow_client:
            raise ValueError("Workflow client is not set")

        try:
            self.workflow_worker = self.workflow_client.create_worker(
                activities=self.workflow_activities,
                workflow_classes=self.workflow_classes,
                passthrough_modules=self.passthrough_modules,
                max_concurrent_activities=self.max_concurrent_activities,
            )

            logger.info(
                f"Starting worker with task queue: {self.workflow_client.worker_task_queue}"
            )
            await self.workflow_worker.run()
        except Exception as e:
            logger.error(f"Error starting worker: {e}")
            raise

    async def stop(self) -> None:
        if self.workflow_worker:
            await self.workflow_worker.shutdown()
            self.workflow_worker = None

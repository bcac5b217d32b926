from abc import abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Type

from photo_pipeline.clients import ClientInterface
from photo_pipeline.workflows import WorkflowInterface


class WorkflowEngineType(Enum):
    TEMPORAL = "temporal"


class WorkflowClient(ClientInterface):
    """Abstract base class defining workflow operations independent of technology."""

    worker_task_queue: str

    @abstractmethod
    async def start_workflow(
        self, workflow_args: Dict[str, Any], workflow_class: Type[WorkflowInterface]
    ) -> Dict[str, Any]:
        """Start a workflow execution.

        Args:
            workflow_args: Arguments for the workflow; ``workflow_id`` is required.
            workflow_class: The workflow class to execute.

        Returns:
            Dict containing workflow_id, run_id and whether the workflow was
            already running under that id.
        """
        pass

    @abstractmethod
    async def get_workflow_run_status(
        self, workflow_id: str, run_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get the status of a workflow run.

        Returns:
            Dict containing status information
        """
        pass

    @abstractmethod
    def create_worker(
        self,
        activities: Sequence[Any],
        workflow_classes: Sequence[Any],
        passthrough_modules: Sequence[str],
        max_concurrent_activities: Optional[int] = None,
    ) -> Any:
        """Create a workflow worker.

        Args:
            activities: Activity functions to register
            workflow_classes: Workflow classes to register
            passthrough_modules: Modules to pass through the workflow sandbox
            max_concurrent_activities: Maximum concurrent activities

        Returns:
            Worker instance specific to the implementation
        """
        pass

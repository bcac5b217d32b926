from typing import Any, Dict, Optional, Sequence, Type

from temporalio import activity, workflow
from temporalio.client import Client, WorkflowExecutionStatus
from temporalio.common import WorkflowIDReusePolicy
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.types import CallableType, ClassType
from temporalio.worker import (
    ActivityInboundInterceptor,
    ExecuteActivityInput,
    ExecuteWorkflowInput,
    Interceptor,
    Worker,
    WorkflowInboundInterceptor,
    WorkflowInterceptorClassInput,
)
from temporalio.worker.workflow_sandbox import (
    SandboxedWorkflowRunner,
    SandboxRestrictions,
)

from photo_pipeline.clients.workflow import WorkflowClient
from photo_pipeline.common.error_codes import WORKFLOW_ERRORS
from photo_pipeline.common.exceptions import PhotoPipelineError
from photo_pipeline.constants import (
    APPLICATION_NAME,
    GRACEFUL_SHUTDOWN_TIMEOUT,
    MAX_CONCURRENT_ACTIVITIES,
    WORKFLOW_HOST,
    WORKFLOW_NAMESPACE,
    WORKFLOW_PORT,
)
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.workflows import WorkflowInterface

logger = get_logger(__name__)


class LifecycleActivityInboundInterceptor(ActivityInboundInterceptor):
    """Logs the start, end and failure of every activity attempt."""

    async def execute_activity(self, input: ExecuteActivityInput) -> Any:
        info = activity.info()
        logger.activity(
            f"Activity {info.activity_type} started (attempt {info.attempt})"
        )
        try:
            output = await super().execute_activity(input)
        except Exception as e:
            logger.warning(
                f"Activity {info.activity_type} failed (attempt {info.attempt}): {e}"
            )
            raise
        logger.activity(f"Activity {info.activity_type} completed")
        return output


class LifecycleWorkflowInboundInterceptor(WorkflowInboundInterceptor):
    """Logs the start and end of workflow executions, skipping replays."""

    async def execute_workflow(self, input: ExecuteWorkflowInput) -> Any:
        info = workflow.info()
        if not workflow.unsafe.is_replaying():
            with workflow.unsafe.sandbox_unrestricted():
                logger.info(f"Workflow {info.workflow_type} {info.workflow_id} started")
        output = await super().execute_workflow(input)
        if not workflow.unsafe.is_replaying():
            with workflow.unsafe.sandbox_unrestricted():
                logger.info(f"Workflow {info.workflow_type} {info.workflow_id} completed")
        return output


class LifecycleInterceptor(Interceptor):
    """Temporal interceptor for lifecycle logging of workflows and activities."""

    def intercept_activity(
        self, next: ActivityInboundInterceptor
    ) -> ActivityInboundInterceptor:
        return LifecycleActivityInboundInterceptor(super().intercept_activity(next))

    def workflow_interceptor_class(
        self, input: WorkflowInterceptorClassInput
    ) -> Optional[Type[WorkflowInboundInterceptor]]:
        return LifecycleWorkflowInboundInterceptor


class TemporalWorkflowClient(WorkflowClient):
    """Client for interacting with the Temporal workflow service.

    Attributes:
        client: Temporal client instance, set by :meth:`load`.
        application_name (str): Name of the application.
        worker_task_queue (str): Task queue for workers and started workflows.
        host (str): Temporal server host.
        port (str): Temporal server port.
        namespace (str): Temporal namespace.
    """

    def __init__(
        self,
        host: str | None = None,
        port: str | None = None,
        application_name: str | None = None,
        namespace: str | None = None,
    ):
        self.client: Optional[Client] = None
        self.application_name = application_name or APPLICATION_NAME
        self.worker_task_queue = self.get_worker_task_queue()
        self.host = host or WORKFLOW_HOST
        self.port = port or WORKFLOW_PORT
        self.namespace = namespace or WORKFLOW_NAMESPACE

    def get_worker_task_queue(self) -> str:
        return self.application_name

    def get_connection_string(self) -> str:
        return f"{self.host}:{self.port}"

    def _require_client(self) -> Client:
        if not self.client:
            raise PhotoPipelineError(
                "Workflow client is not loaded",
                WORKFLOW_ERRORS["WORKFLOW_CLIENT_NOT_LOADED_ERROR"],
            )
        return self.client

    async def load(self) -> None:
        """Connect to the Temporal server."""
        self.client = await Client.connect(
            self.get_connection_string(),
            namespace=self.namespace,
        )
        logger.info(f"Connected to Temporal at {self.get_connection_string()}")

    async def close(self) -> None:
        # Temporal clients hold no closable resources of their own
        self.client = None

    async def start_workflow(
        self, workflow_args: Dict[str, Any], workflow_class: Type[WorkflowInterface]
    ) -> Dict[str, Any]:
        """Start a workflow execution keyed by ``workflow_args["workflow_id"]``.

        Starting an id that already exists is not an error: the existing
        execution's ids are returned with ``already_started`` set.

        Returns:
            Dict[str, Any]: A dictionary containing:
                - workflow_id (str): The ID of the workflow
                - run_id (str): The run ID of the workflow execution
                - already_started (bool): Whether the id was already taken
        """
        client = self._require_client()
        workflow_id = workflow_args["workflow_id"]

        try:
            handle = await client.start_workflow(
                workflow_class.run,
                workflow_args,
                id=workflow_id,
                task_queue=self.worker_task_queue,
                id_reuse_policy=WorkflowIDReusePolicy.REJECT_DUPLICATE,
            )
        except WorkflowAlreadyStartedError:
            logger.info(f"Workflow {workflow_id} already started")
            description = await client.get_workflow_handle(workflow_id).describe()
            return {
                "workflow_id": workflow_id,
                "run_id": description.run_id,
                "already_started": True,
            }
        except Exception as e:
            logger.error(f"Error starting workflow {workflow_id}: {e}")
            raise PhotoPipelineError(
                f"Failed to start workflow {workflow_id}: {e}",
                WORKFLOW_ERRORS["WORKFLOW_CLIENT_START_ERROR"],
            ) from e

        logger.info(f"Workflow started: {handle.id} {handle.result_run_id}")
        return {
            "workflow_id": handle.id,
            "run_id": handle.result_run_id,
            "already_started": False,
        }

    def create_worker(
        self,
        activities: Sequence[CallableType],
        workflow_classes: Sequence[ClassType],
        passthrough_modules: Sequence[str],
        max_concurrent_activities: Optional[int] = MAX_CONCURRENT_ACTIVITIES,
    ) -> Worker:
        """Create a Temporal worker on the application's task queue.

        Raises:
            PhotoPipelineError: If the client is not loaded.
        """
        client = self._require_client()

        return Worker(
            client,
            task_queue=self.worker_task_queue,
            workflows=workflow_classes,
            activities=activities,
            workflow_runner=SandboxedWorkflowRunner(
                restrictions=SandboxRestrictions.default.with_passthrough_modules(
                    *passthrough_modules
                )
            ),
            interceptors=[LifecycleInterceptor()],
            max_concurrent_activities=max_concurrent_activities,
            graceful_shutdown_timeout=GRACEFUL_SHUTDOWN_TIMEOUT,
        )

    async def get_workflow_run_status(
        self, workflow_id: str, run_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get the status of a workflow run.

        Returns:
            Dict[str, Any]: workflow_id, run_id, status and, once known, the
            start and close times.

        Raises:
            PhotoPipelineError: If the client is not loaded or the status
                cannot be read.
        """
        client = self._require_client()

        workflow_handle = client.get_workflow_handle(workflow_id, run_id=run_id)
        try:
            description = await workflow_handle.describe()
        except Exception as e:
            logger.error(f"Error getting workflow status: {e}")
            raise PhotoPipelineError(
                f"Error getting workflow status for {workflow_id} {run_id}: {e}",
                WORKFLOW_ERRORS["WORKFLOW_CLIENT_STATUS_ERROR"],
            ) from e

        status = (
            WorkflowExecutionStatus(description.status).name
            if description.status
            else "UNKNOWN"
        )
        return {
            "workflow_id": workflow_id,
            "run_id": description.run_id,
            "status": status,
            "start_time": description.start_time.isoformat()
            if description.start_time
            else None,
            "close_time": description.close_time.isoformat()
            if description.close_time
            else None,
        }

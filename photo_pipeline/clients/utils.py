from photo_pipeline.clients.temporal import TemporalWorkflowClient
from photo_pipeline.clients.workflow import WorkflowClient, WorkflowEngineType
from photo_pipeline.constants import APPLICATION_NAME


def get_workflow_client(
    engine_type: WorkflowEngineType = WorkflowEngineType.TEMPORAL,
    application_name: str = APPLICATION_NAME,
) -> WorkflowClient:
    """
    Get a workflow client based on the engine type.

    Args:
        engine_type: The type of workflow engine to use
        application_name: The name of the application, used as task queue

    Returns:
        A workflow client instance
    """
    if engine_type == WorkflowEngineType.TEMPORAL:
        return TemporalWorkflowClient(application_name=application_name)
    else:
        raise ValueError(f"Unsupported workflow engine type: {engine_type}")

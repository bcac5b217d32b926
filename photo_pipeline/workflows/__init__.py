"""Workflow interface module for Temporal workflows.

This module provides the base workflow interface and the activity options
every workflow in the pipeline shares.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable, Dict, Generic, Sequence, Type, TypeVar

from temporalio import workflow
from temporalio.common import RetryPolicy

from photo_pipeline.activities import ActivitiesInterface
from photo_pipeline.constants import (
    ACTIVITY_HEARTBEAT_TIMEOUT,
    ACTIVITY_MAX_ATTEMPTS,
    ACTIVITY_START_TO_CLOSE_TIMEOUT,
)

T = TypeVar("T", bound=ActivitiesInterface)


class WorkflowInterface(ABC, Generic[T]):
    """Abstract base class for all workflow implementations.

    Attributes:
        activities_cls (Type[T]): The activities class used by the workflow.
        default_heartbeat_timeout (timedelta): Heartbeat timeout of every activity.
        default_start_to_close_timeout (timedelta): Per-attempt activity timeout.
        default_retry_policy (RetryPolicy): Retry policy of every activity.
    """

    activities_cls: Type[T]

    default_heartbeat_timeout: timedelta = ACTIVITY_HEARTBEAT_TIMEOUT
    default_start_to_close_timeout: timedelta = ACTIVITY_START_TO_CLOSE_TIMEOUT
    default_retry_policy: RetryPolicy = RetryPolicy(
        maximum_attempts=ACTIVITY_MAX_ATTEMPTS, backoff_coefficient=2
    )

    @staticmethod
    def get_activities(activities: T) -> Sequence[Callable[..., Any]]:
        """Get the activities a worker must register to run this workflow."""
        return activities.get_activities()

    async def execute_activity(
        self, activity_method: Callable[..., Any], payload: Dict[str, Any]
    ) -> Any:
        """Run ``activity_method`` with the workflow's default timeouts and retries."""
        return await workflow.execute_activity_method(
            activity_method,
            args=[payload],
            retry_policy=self.default_retry_policy,
            start_to_close_timeout=self.default_start_to_close_timeout,
            heartbeat_timeout=self.default_heartbeat_timeout,
        )

    @abstractmethod
    async def run(self, workflow_args: Dict[str, Any]) -> Any:
        raise NotImplementedError

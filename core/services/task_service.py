"""Control API for background tasks."""

from typing import Any

from core.batch.execution_logger import TaskExecutionLogger
from core.batch.lifecycle import ensure_deletable, ensure_operation_allowed, sources_for
from core.batch.state_manager import TaskStateManager
from core.batch.task_scheduler import TaskScheduler
from core.constants import (
    DEFAULT_STATUS_LOG_LIMIT,
    DEFAULT_TASK_LIST_LIMIT,
    DEFAULT_TASK_PRIORITY,
)
from core.exceptions import InvalidStateTransitionError
from core.log import get_logger
from core.models import (
    BackgroundTask,
    ProcessingStatus,
    TaskDetailResponse,
    TaskListResponse,
    TaskLogResponse,
    TaskResponse,
)
from core.types import BackgroundTaskStatus
from core.utils import count_input_items, get_current_timestamp

logger = get_logger(__name__)


class BackgroundTaskService:
    """Creates, inspects and controls background tasks.

    Every mutating operation validates the task's current status first and
    then applies a conditional update, so a concurrent change made by the
    worker surfaces as InvalidStateTransitionError rather than being lost.
    """

    def __init__(
        self,
        state_manager: TaskStateManager,
        scheduler: TaskScheduler,
        execution_logger: TaskExecutionLogger,
        autostart: bool = True,
        status_log_limit: int = DEFAULT_STATUS_LOG_LIMIT,
        task_list_limit: int = DEFAULT_TASK_LIST_LIMIT,
    ) -> None:
        """Initialize the task service.

        Args:
            state_manager: Task store facade
            scheduler: Worker loop to wake or start
            execution_logger: Task audit logger
            autostart: Start the worker when work is queued and it is idle
            status_log_limit: Log entries returned with a task status
            task_list_limit: Tasks returned by a listing
        """
        self._state_manager = state_manager
        self._scheduler = scheduler
        self._execution_logger = execution_logger
        self._autostart = autostart
        self._status_log_limit = status_log_limit
        self._task_list_limit = task_list_limit

    async def create_task(
        self,
        task_type: str,
        title: str,
        description: str | None,
        input_data: dict[str, Any],
        branch_id: str | None = None,
        created_by: str | None = None,
        priority: int = DEFAULT_TASK_PRIORITY,
    ) -> str:
        """Persist a PENDING task and hand it to the worker.

        Returns:
            The new task id
        """
        task = self._state_manager.create_task(
            BackgroundTask(
                task_type=task_type,
                title=title,
                description=description,
                input_data=input_data,
                branch_id=branch_id,
                created_by=created_by,
                priority=priority,
                status=BackgroundTaskStatus.PENDING,
                total_items=count_input_items(input_data),
            )
        )
        logger.info(f"Created task {task.id} ({task_type}): {title}")
        self._execution_logger.info(task.id, f"Task created: {title}")

        self._notify_worker()
        return task.id

    async def pause_task(self, task_id: str) -> None:
        """PENDING or RUNNING -> PAUSED; a running task stops before its next item."""
        self._apply("pause", task_id)
        self._execution_logger.info(task_id, "Task paused by user")

    async def resume_task(self, task_id: str) -> None:
        """PAUSED -> PENDING."""
        self._apply("resume", task_id)
        self._execution_logger.info(task_id, "Task resumed by user")
        self._notify_worker()

    async def cancel_task(self, task_id: str) -> None:
        """Any non-terminal status -> CANCELLED."""
        self._apply("cancel", task_id, completed_at=get_current_timestamp())
        self._execution_logger.info(task_id, "Task cancelled by user")

    async def requeue_task(self, task_id: str) -> None:
        """FAILED -> RETRY so the worker picks the task up again."""
        self._apply("requeue", task_id, completed_at=None)
        self._execution_logger.info(task_id, "Task re-queued for retry")
        self._notify_worker()

    async def delete_task(self, task_id: str) -> None:
        """Delete a terminal task together with its execution log."""
        task = self._state_manager.require_task(task_id)
        ensure_deletable(task_id, task.status)
        self._state_manager.delete_task(task_id)
        logger.info(f"Deleted task {task_id}")

    async def get_task_status(self, task_id: str) -> TaskDetailResponse:
        """Get a task with its most recent log entries, newest first."""
        task = self._state_manager.require_task(task_id)
        logs = self._state_manager.get_recent_logs(
            task_id, limit=self._status_log_limit
        )
        return TaskDetailResponse(
            task=TaskResponse.from_task(task),
            execution_logs=[TaskLogResponse.from_log(entry) for entry in logs],
        )

    async def get_all_tasks(self, branch_id: str | None = None) -> TaskListResponse:
        """Most recent tasks, newest first, optionally scoped to a branch."""
        tasks = self._state_manager.list_tasks(
            branch_id=branch_id, limit=self._task_list_limit
        )
        return TaskListResponse(
            tasks=[TaskResponse.from_task(task) for task in tasks], count=len(tasks)
        )

    async def get_processing_status(self) -> ProcessingStatus:
        return self._scheduler.get_status()

    async def restart_processing(self) -> bool:
        """Start the worker if it is not running.

        Returns:
            True if the worker was started
        """
        return self._scheduler.restart_processing()

    def _apply(self, operation: str, task_id: str, **fields: Any) -> None:
        task = self._state_manager.require_task(task_id)
        target = ensure_operation_allowed(task_id, operation, task.status)

        applied = self._state_manager.transition_task(
            task_id, sources_for(target), status=target, **fields
        )
        if not applied:
            # Status changed between the read and the update
            current = self._state_manager.require_task(task_id).status
            raise InvalidStateTransitionError(task_id, operation, current.value)

        logger.info(f"Task {task_id}: {task.status.value} -> {target.value}")

    def _notify_worker(self) -> None:
        if self._scheduler.is_processing:
            self._scheduler.wake()
        elif self._autostart:
            self._scheduler.start_processing()

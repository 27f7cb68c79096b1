"""Task state management for background processing."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session

from core.constants import (
    DEFAULT_STATUS_LOG_LIMIT,
    DEFAULT_TASK_LIST_LIMIT,
    ELIGIBLE_STATUSES,
)
from core.database.repository import TaskExecutionLogRepository, TaskRepository
from core.exceptions import TaskNotFoundError
from core.log import get_logger
from core.models.rows import BackgroundTask, TaskExecutionLog
from core.types import BackgroundTaskStatus, LogLevel
from core.utils import compute_percentage, get_current_timestamp

logger = get_logger(__name__)

INTERRUPTED_ERROR = "Task interrupted: worker stopped while the task was running"


class TaskStateManager:
    """Task store facade; every call runs in its own short session."""

    def __init__(self, db_engine: Engine) -> None:
        self.db_engine = db_engine

    # ---- reads ----

    def get_task(self, task_id: str) -> BackgroundTask | None:
        with Session(self.db_engine) as session:
            return TaskRepository(session).get_by_id(task_id)

    def require_task(self, task_id: str) -> BackgroundTask:
        """Get a task or raise TaskNotFoundError."""
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def find_next_eligible(self) -> BackgroundTask | None:
        """Get the next task the worker should run, if any."""
        with Session(self.db_engine) as session:
            return TaskRepository(session).find_next_eligible()

    def list_tasks(
        self, branch_id: str | None = None, limit: int = DEFAULT_TASK_LIST_LIMIT
    ) -> list[BackgroundTask]:
        with Session(self.db_engine) as session:
            return TaskRepository(session).list_tasks(branch_id=branch_id, limit=limit)

    def get_recent_logs(
        self, task_id: str, limit: int = DEFAULT_STATUS_LOG_LIMIT
    ) -> list[TaskExecutionLog]:
        with Session(self.db_engine) as session:
            return TaskExecutionLogRepository(session).get_recent(task_id, limit=limit)

    def get_status(self, task_id: str) -> BackgroundTaskStatus | None:
        task = self.get_task(task_id)
        return task.status if task else None

    # ---- writes ----

    def create_task(self, task: BackgroundTask) -> BackgroundTask:
        with Session(self.db_engine) as session:
            return TaskRepository(session).create(task)

    def update_task(self, task_id: str, **fields: Any) -> bool:
        with Session(self.db_engine) as session:
            return TaskRepository(session).update_fields(task_id, **fields)

    def transition_task(
        self,
        task_id: str,
        expected: Iterable[BackgroundTaskStatus],
        **fields: Any,
    ) -> bool:
        """Conditionally update a task; False when its status did not match."""
        with Session(self.db_engine) as session:
            return TaskRepository(session).transition(task_id, expected, **fields)

    def append_task_error(
        self,
        task_id: str,
        error: str,
        expected: Iterable[BackgroundTaskStatus] | None = None,
        **fields: Any,
    ) -> bool:
        with Session(self.db_engine) as session:
            return TaskRepository(session).append_error(
                task_id, error, expected=expected, **fields
            )

    def delete_task(self, task_id: str) -> bool:
        with Session(self.db_engine) as session:
            return TaskRepository(session).delete_with_logs(task_id)

    def append_log(
        self,
        task_id: str,
        level: LogLevel,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> TaskExecutionLog:
        with Session(self.db_engine) as session:
            return TaskExecutionLogRepository(session).append(
                task_id, level, message, details
            )

    # ---- worker transitions ----

    def mark_running(self, task_id: str) -> BackgroundTask | None:
        """Claim an eligible task for execution.

        Returns:
            The claimed task, or None if it was no longer eligible
        """
        claimed = self.transition_task(
            task_id,
            ELIGIBLE_STATUSES,
            status=BackgroundTaskStatus.RUNNING,
            started_at=get_current_timestamp(),
            completed_at=None,
        )
        if not claimed:
            return None
        return self.get_task(task_id)

    def complete_task(self, task_id: str, results: dict[str, Any]) -> bool:
        """RUNNING -> COMPLETED with results; no-op if the task left RUNNING."""
        return self.transition_task(
            task_id,
            [BackgroundTaskStatus.RUNNING],
            status=BackgroundTaskStatus.COMPLETED,
            completed_at=get_current_timestamp(),
            results=results,
        )

    def fail_task(self, task_id: str, error: str) -> bool:
        """RUNNING -> FAILED, appending the error; no-op if the task left RUNNING."""
        return self.append_task_error(
            task_id,
            error,
            expected=[BackgroundTaskStatus.RUNNING],
            status=BackgroundTaskStatus.FAILED,
            completed_at=get_current_timestamp(),
        )

    def record_progress(
        self,
        task_id: str,
        processed: int,
        failed: int,
        total: int,
        error: str | None = None,
        results: dict[str, Any] | None = None,
    ) -> bool:
        """Persist item counters; percentage is always derived from them.

        ``results`` is the per-item detail behind the counters, written in the
        same commit so a resumed run can pick it up.
        """
        fields: dict[str, Any] = {
            "processed_items": processed,
            "failed_items": failed,
            "percentage": compute_percentage(processed, total),
        }
        if results is not None:
            fields["results"] = results
        if error is not None:
            return self.append_task_error(task_id, error, **fields)
        return self.update_task(task_id, **fields)

    def recover_interrupted_tasks(self) -> list[str]:
        """Fail tasks left RUNNING by a worker that is no longer alive.

        Returns:
            Ids of the tasks that were marked FAILED
        """
        with Session(self.db_engine) as session:
            running = TaskRepository(session).list_by_status(
                BackgroundTaskStatus.RUNNING
            )
            task_ids = [task.id for task in running]

        recovered = [
            task_id
            for task_id in task_ids
            if self.fail_task(task_id, INTERRUPTED_ERROR)
        ]
        if recovered:
            logger.warning(f"Marked {len(recovered)} interrupted tasks as FAILED")
        return recovered

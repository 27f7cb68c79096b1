"""Repository for background task rows."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, update
from sqlmodel import Session, col, desc, select

from core.constants import DEFAULT_TASK_LIST_LIMIT, ELIGIBLE_STATUSES
from core.database.repository.base import BaseRepository
from core.log import get_logger
from core.models.rows import BackgroundTask, TaskExecutionLog
from core.types import BackgroundTaskStatus
from core.utils import get_current_timestamp

logger = get_logger(__name__)


class TaskRepository(BaseRepository[BackgroundTask]):
    """Task store access: creation, dequeue and partial updates."""

    def __init__(self, db: Session) -> None:
        super().__init__(BackgroundTask, db)

    def find_next_eligible(self) -> BackgroundTask | None:
        """Get the best eligible task.

        Eligible means PENDING or RETRY. Lower priority values win, ties go to
        the oldest created_at.
        """
        statement = (
            select(BackgroundTask)
            .where(col(BackgroundTask.status).in_(list(ELIGIBLE_STATUSES)))
            .order_by(
                col(BackgroundTask.priority).asc(),
                col(BackgroundTask.created_at).asc(),
            )
            .limit(1)
        )
        return self.db.exec(statement).first()

    def list_tasks(
        self, branch_id: str | None = None, limit: int = DEFAULT_TASK_LIST_LIMIT
    ) -> list[BackgroundTask]:
        """Get recent tasks, newest first, optionally scoped to a branch."""
        statement = select(BackgroundTask)
        if branch_id is not None:
            statement = statement.where(BackgroundTask.branch_id == branch_id)
        statement = statement.order_by(desc(BackgroundTask.created_at)).limit(limit)
        return list(self.db.exec(statement).all())

    def list_by_status(self, status: BackgroundTaskStatus) -> list[BackgroundTask]:
        """Get all tasks currently in a status."""
        statement = select(BackgroundTask).where(BackgroundTask.status == status)
        return list(self.db.exec(statement).all())

    def update_fields(self, task_id: str, **fields: Any) -> bool:
        """Update only the given columns of a task in one statement.

        Returns:
            True if a row was updated
        """
        return self._update(task_id, None, fields)

    def transition(
        self,
        task_id: str,
        expected: Iterable[BackgroundTaskStatus],
        **fields: Any,
    ) -> bool:
        """Update a task only while its status is one of ``expected``.

        Returns:
            True if the row matched and was updated
        """
        return self._update(task_id, list(expected), fields)

    def append_error(
        self,
        task_id: str,
        error: str,
        expected: Iterable[BackgroundTaskStatus] | None = None,
        **fields: Any,
    ) -> bool:
        """Append to the errors list and update other columns in one commit."""
        task = self.get_by_id(task_id)
        if task is None:
            return False
        if expected is not None and task.status not in set(expected):
            return False

        # Reassign so the JSON column is flagged dirty
        task.errors = [*task.errors, error]
        for name, value in fields.items():
            setattr(task, name, value)
        task.updated_at = get_current_timestamp()

        try:
            self.db.add(task)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    def delete_with_logs(self, task_id: str) -> bool:
        """Delete a task and its execution log entries in one transaction."""
        task = self.get_by_id(task_id)
        if task is None:
            return False

        try:
            self.db.execute(
                delete(TaskExecutionLog).where(
                    col(TaskExecutionLog.task_id) == task_id
                )
            )
            self.db.delete(task)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug(f"Deleted task {task_id} and its execution logs")
        return True

    def _update(
        self,
        task_id: str,
        expected: list[BackgroundTaskStatus] | None,
        fields: dict[str, Any],
    ) -> bool:
        values = {**fields, "updated_at": get_current_timestamp()}
        statement = update(BackgroundTask).where(
            col(BackgroundTask.id) == task_id
        )
        if expected is not None:
            statement = statement.where(col(BackgroundTask.status).in_(expected))
        statement = statement.values(**values)

        try:
            result = self.db.execute(statement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return bool(result.rowcount)

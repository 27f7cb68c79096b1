"""Repository for task execution log entries."""

from typing import Any

from sqlmodel import Session, col, desc, select

from core.constants import DEFAULT_STATUS_LOG_LIMIT
from core.database.repository.base import BaseRepository
from core.models.rows import TaskExecutionLog
from core.types import LogLevel


class TaskExecutionLogRepository(BaseRepository[TaskExecutionLog]):
    """Append-only access to the task audit trail."""

    def __init__(self, db: Session) -> None:
        super().__init__(TaskExecutionLog, db)

    def append(
        self,
        task_id: str,
        level: LogLevel,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> TaskExecutionLog:
        """Insert one log entry for a task."""
        entry = TaskExecutionLog(
            task_id=task_id, level=level, message=message, details=details
        )
        return self.create(entry)

    def get_recent(
        self, task_id: str, limit: int = DEFAULT_STATUS_LOG_LIMIT
    ) -> list[TaskExecutionLog]:
        """Get the most recent entries for a task, newest first."""
        statement = (
            select(TaskExecutionLog)
            .where(TaskExecutionLog.task_id == task_id)
            .order_by(
                desc(TaskExecutionLog.timestamp), desc(col(TaskExecutionLog.log_id))
            )
            .limit(limit)
        )
        return list(self.db.exec(statement).all())

    def count_for_task(self, task_id: str) -> int:
        """Count entries belonging to a task."""
        statement = select(TaskExecutionLog).where(TaskExecutionLog.task_id == task_id)
        return len(list(self.db.exec(statement).all()))

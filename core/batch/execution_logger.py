"""Structured execution logging tied to a task id."""

from typing import Any

from core.batch.state_manager import TaskStateManager
from core.log import get_logger
from core.types import LogLevel

logger = get_logger(__name__)


class TaskExecutionLogger:
    """Appends audit entries to the task store.

    A failure to write a log entry is reported on the process log only; it
    never propagates into the task being logged.
    """

    def __init__(self, state_manager: TaskStateManager) -> None:
        self._state_manager = state_manager

    def append(
        self,
        task_id: str,
        level: LogLevel,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        try:
            self._state_manager.append_log(task_id, level, message, details)
        except Exception as e:
            logger.error(f"Failed to log task execution for {task_id}: {e}")
            return

        logger.debug(f"[task {task_id}] {level.value} {message}")

    def debug(self, task_id: str, message: str, **details: Any) -> None:
        self.append(task_id, LogLevel.DEBUG, message, details or None)

    def info(self, task_id: str, message: str, **details: Any) -> None:
        self.append(task_id, LogLevel.INFO, message, details or None)

    def warn(self, task_id: str, message: str, **details: Any) -> None:
        self.append(task_id, LogLevel.WARN, message, details or None)

    def error(self, task_id: str, message: str, **details: Any) -> None:
        self.append(task_id, LogLevel.ERROR, message, details or None)

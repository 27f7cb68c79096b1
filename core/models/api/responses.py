"""API response models."""

from typing import Any

from pydantic import BaseModel, Field

from core.models.rows import BackgroundTask, BackgroundTaskBase, TaskExecutionLog
from core.types import LogLevel


class TaskResponse(BackgroundTaskBase, table=False):
    """Response model for a background task."""

    id: str
    input_data: dict[str, Any] = Field(default_factory=dict)
    results: dict[str, Any] | None = None
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_task(cls, task: BackgroundTask) -> "TaskResponse":
        """Create TaskResponse from a BackgroundTask row."""
        return cls(**task.model_dump())


class TaskLogResponse(BaseModel):
    """Response model for one execution log entry."""

    log_id: int | None
    level: LogLevel
    message: str
    details: dict[str, Any] | None = None
    timestamp: str

    @classmethod
    def from_log(cls, entry: TaskExecutionLog) -> "TaskLogResponse":
        return cls(
            log_id=entry.log_id,
            level=entry.level,
            message=entry.message,
            details=entry.details,
            timestamp=entry.timestamp,
        )


class TaskDetailResponse(BaseModel):
    """A task with its most recent execution log entries."""

    task: TaskResponse
    execution_logs: list[TaskLogResponse] = Field(default_factory=list)


class TaskListResponse(BaseModel):
    """Recent tasks, newest first."""

    tasks: list[TaskResponse]
    count: int


class TaskCreatedResponse(BaseModel):
    """Identifier of a newly created task."""

    task_id: str


class TaskActionResponse(BaseModel):
    """Result of a control operation."""

    success: bool = True
    task_id: str | None = None
    message: str | None = None


class ProcessingStatusResponse(BaseModel):
    """Worker loop state."""

    is_processing: bool
    current_task_id: str | None = None

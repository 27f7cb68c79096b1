"""Task management domain models."""

from typing import Any

from pydantic import BaseModel, Field

from core.models.rows import BackgroundTask
from core.types import BackgroundTaskStatus


class TaskContext(BaseModel):
    """What a batch strategy knows about the task it is running."""

    task_id: str
    task_type: str
    title: str
    branch_id: str | None = None
    created_by: str | None = None
    total_items: int = 0
    # Counts already persisted by an earlier, interrupted run
    processed_items: int = 0
    failed_items: int = 0
    # Per-item detail persisted alongside those counts
    results: dict[str, Any] | None = None

    @classmethod
    def from_task(cls, task: BackgroundTask) -> "TaskContext":
        """Build a context from a stored task row."""
        return cls(
            task_id=task.id,
            task_type=task.task_type,
            title=task.title,
            branch_id=task.branch_id,
            created_by=task.created_by,
            total_items=task.total_items,
            processed_items=task.processed_items,
            failed_items=task.failed_items,
            results=task.results,
        )

    @property
    def resume_offset(self) -> int:
        """Index of the first item not yet processed."""
        return min(self.processed_items, self.total_items)


class TaskNotification(BaseModel):
    """Summary sent when a task reaches COMPLETED or FAILED."""

    task_id: str
    task_type: str
    title: str
    status: BackgroundTaskStatus
    processed_items: int
    total_items: int
    failed_items: int = 0
    percentage: int = 0
    results: dict[str, Any] | None = None
    errors: list[str] = Field(default_factory=list)
    duration: str | None = None
    branch_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == BackgroundTaskStatus.COMPLETED


class ProcessingStatus(BaseModel):
    """Process-local worker state."""

    is_processing: bool
    current_task_id: str | None = None

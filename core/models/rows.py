"""SQLModel database models for background tasks."""

from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, Index, SQLModel

from core.constants import DEFAULT_TASK_PRIORITY
from core.types import BackgroundTaskStatus, LogLevel
from core.utils import get_current_timestamp


def generate_task_id() -> str:
    """Generate an opaque task identifier."""
    return uuid4().hex


class BackgroundTaskBase(SQLModel):
    """Base background task model with common fields."""

    task_type: str = Field(description="Tag selecting the processing strategy")
    title: str = Field(description="Human readable task title")
    description: str | None = Field(default=None, description="Task description")
    branch_id: str | None = Field(
        default=None, index=True, description="Tenant scope (informational)"
    )
    created_by: str | None = Field(default=None, description="Actor id")
    priority: int = Field(
        default=DEFAULT_TASK_PRIORITY, description="Lower value runs first"
    )
    status: BackgroundTaskStatus = Field(
        default=BackgroundTaskStatus.PENDING, description="Lifecycle status"
    )
    total_items: int = Field(default=0, ge=0, description="Fixed at creation")
    processed_items: int = Field(default=0, ge=0, description="success + failed")
    failed_items: int = Field(default=0, ge=0, description="Failed item count")
    percentage: int = Field(default=0, ge=0, le=100, description="Derived progress")
    created_at: str = Field(
        default_factory=get_current_timestamp,
        description="ISO8601 datetime, FIFO tie-break",
    )
    started_at: str | None = Field(default=None, description="ISO8601 datetime")
    completed_at: str | None = Field(default=None, description="ISO8601 datetime")
    updated_at: str = Field(
        default_factory=get_current_timestamp,
        description="ISO8601 datetime - automatically updated",
    )


class BackgroundTask(BackgroundTaskBase, table=True):
    """Background task database model using SQLModel."""

    id: str = Field(default_factory=generate_task_id, primary_key=True)
    input_data: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    results: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    errors: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    # Dequeue order: status filter, then priority, then created_at
    __table_args__ = (
        Index("idx_task_eligible", "status", "priority", "created_at"),
        Index("idx_task_created_at", "created_at"),
    )


class TaskExecutionLog(SQLModel, table=True):
    """Append-only audit trail entry for a background task."""

    log_id: int | None = Field(default=None, primary_key=True)
    task_id: str = Field(foreign_key="backgroundtask.id", index=True)
    level: LogLevel = Field(default=LogLevel.INFO, description="Severity")
    message: str = Field(description="Log message")
    details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    timestamp: str = Field(
        default_factory=get_current_timestamp, description="ISO8601 datetime"
    )

    __table_args__ = (Index("idx_tasklog_task_timestamp", "task_id", "timestamp"),)

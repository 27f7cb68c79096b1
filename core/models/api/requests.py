"""API request models."""

from typing import Any

from pydantic import BaseModel, Field

from core.constants import DEFAULT_TASK_PRIORITY
from core.types import AccountKind


class TaskCreateRequest(BaseModel):
    """Request model for creating a generic background task."""

    task_type: str = Field(..., min_length=1, description="Registered task type")
    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(default=None, description="Task description")
    input_data: dict[str, Any] = Field(
        default_factory=dict, description="Payload; sub-items live under 'items'"
    )
    branch_id: str | None = Field(default=None, description="Tenant scope")
    created_by: str | None = Field(default=None, description="Actor id")
    priority: int = Field(
        default=DEFAULT_TASK_PRIORITY, ge=1, le=10, description="Lower runs first"
    )


class BulkAccountTaskRequest(BaseModel):
    """Request model for a bulk account provisioning task."""

    kind: AccountKind = Field(..., description="Kind of account to create")
    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(default=None, description="Task description")
    items: list[dict[str, Any]] = Field(..., description="One entry per account")
    branch_id: str | None = Field(default=None, description="Tenant scope")
    created_by: str | None = Field(default=None, description="Actor id")
    priority: int = Field(
        default=DEFAULT_TASK_PRIORITY, ge=1, le=10, description="Lower runs first"
    )

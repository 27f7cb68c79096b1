"""Unified models package for the bulk task processor."""

# API models (request/response)
from core.models.api.requests import BulkAccountTaskRequest, TaskCreateRequest
from core.models.api.responses import (
    ProcessingStatusResponse,
    TaskActionResponse,
    TaskCreatedResponse,
    TaskDetailResponse,
    TaskListResponse,
    TaskLogResponse,
    TaskResponse,
)

# Batch models
from core.models.batch import BatchResult, ProcessedItemRecord

# Domain models
from core.models.domain.task import ProcessingStatus, TaskContext, TaskNotification

# Database models (SQLModel rows)
from core.models.rows import BackgroundTask, BackgroundTaskBase, TaskExecutionLog

__all__ = [
    # API models
    "BulkAccountTaskRequest",
    "TaskCreateRequest",
    "ProcessingStatusResponse",
    "TaskActionResponse",
    "TaskCreatedResponse",
    "TaskDetailResponse",
    "TaskListResponse",
    "TaskLogResponse",
    "TaskResponse",
    # Batch models
    "BatchResult",
    "ProcessedItemRecord",
    # Domain models
    "ProcessingStatus",
    "TaskContext",
    "TaskNotification",
    # Database models
    "BackgroundTask",
    "BackgroundTaskBase",
    "TaskExecutionLog",
]

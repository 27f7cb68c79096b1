"""Repository layer for database operations."""

from .base import BaseRepository
from .task import TaskRepository
from .task_log import TaskExecutionLogRepository

__all__ = [
    "BaseRepository",
    "TaskRepository",
    "TaskExecutionLogRepository",
]

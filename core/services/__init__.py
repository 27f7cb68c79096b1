"""Core services package."""

from .task_service import BackgroundTaskService

__all__ = [
    "BackgroundTaskService",
]

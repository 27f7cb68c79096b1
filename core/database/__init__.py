"""Core database functionality."""

from .engine import (
    create_database_engine,
    create_database_tables,
    drop_database_tables,
    reset_database,
)
from .repository import TaskExecutionLogRepository, TaskRepository

__all__ = [
    "TaskRepository",
    "TaskExecutionLogRepository",
    "create_database_engine",
    "create_database_tables",
    "drop_database_tables",
    "reset_database",
]

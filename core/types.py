"""Common type definitions for the bulk task system."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class BackgroundTaskStatus(str, Enum):
    """Background task lifecycle status."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    RETRY = "RETRY"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class LogLevel(str, Enum):
    """Severity of a task execution log entry."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"


class TaskType(str, Enum):
    """Built-in task types registered by the application."""

    BULK_ACCOUNT_CREATION = "BULK_ACCOUNT_CREATION"
    BULK_ACCOUNT_RETRY = "BULK_ACCOUNT_RETRY"


class AccountKind(str, Enum):
    """Item kinds handled by the bulk account strategies."""

    STUDENT = "student"
    TEACHER = "teacher"
    EMPLOYEE = "employee"

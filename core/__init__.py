"""Core functionality for the bulk task processor."""

from .config import Settings, load_settings, settings
from .log import (
    get_logger,
    setup_logging,
    setup_production_logging,
    setup_test_logging,
)
from .types import BackgroundTaskStatus, Environment, LogLevel

__all__ = [
    "BackgroundTaskStatus",
    "Environment",
    "LogLevel",
    "Settings",
    "load_settings",
    "settings",
    "get_logger",
    "setup_logging",
    "setup_production_logging",
    "setup_test_logging",
]

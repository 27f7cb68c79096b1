"""Application constants and default configuration values."""

from typing import Final

from core.types import BackgroundTaskStatus

# Worker loop timing (seconds)
DEFAULT_IDLE_POLL_INTERVAL: Final[float] = 30.0
DEFAULT_INTER_TASK_DELAY: Final[float] = 1.0

# Batch item processing
DEFAULT_BATCH_SIZE: Final[int] = 10
DEFAULT_ITEM_DELAY: Final[float] = 0.2
DEFAULT_BATCH_DELAY: Final[float] = 1.0

# Control API read limits
DEFAULT_TASK_PRIORITY: Final[int] = 5
DEFAULT_STATUS_LOG_LIMIT: Final[int] = 10
DEFAULT_TASK_LIST_LIMIT: Final[int] = 50

# Notification rendering
MAX_NOTIFIED_ERRORS: Final[int] = 5

# HTTP collaborators
DEFAULT_HTTP_TIMEOUT: Final[float] = 30.0
DEFAULT_USER_AGENT: Final[str] = "BulkTask/0.1.0"

ELIGIBLE_STATUSES: Final[frozenset[BackgroundTaskStatus]] = frozenset(
    {BackgroundTaskStatus.PENDING, BackgroundTaskStatus.RETRY}
)
TERMINAL_STATUSES: Final[frozenset[BackgroundTaskStatus]] = frozenset(
    {
        BackgroundTaskStatus.COMPLETED,
        BackgroundTaskStatus.FAILED,
        BackgroundTaskStatus.CANCELLED,
    }
)

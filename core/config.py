"""Configuration management for the bulk task processor."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_BATCH_DELAY,
    DEFAULT_BATCH_SIZE,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_IDLE_POLL_INTERVAL,
    DEFAULT_INTER_TASK_DELAY,
    DEFAULT_ITEM_DELAY,
    DEFAULT_STATUS_LOG_LIMIT,
    DEFAULT_TASK_LIST_LIMIT,
)
from .types import Environment

TRUE_VALUES = ["true", "1", "yes", "on"]


class Settings(BaseModel):
    """Application settings."""

    # Environment
    version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production/testing)",
    )

    # API Settings
    api_title: str = Field(default="BulkTask API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    cors_allow_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Write a rotating log file")

    # Database
    database_path: Path | None = Field(
        default=None, description="SQLite path overriding the per-environment default"
    )

    # Worker loop
    worker_autostart: bool = Field(
        default=True, description="Start the worker loop when the API starts"
    )
    idle_poll_interval: float = Field(
        default=DEFAULT_IDLE_POLL_INTERVAL,
        description="Seconds to wait before re-polling when no task is eligible",
    )
    inter_task_delay: float = Field(
        default=DEFAULT_INTER_TASK_DELAY,
        description="Seconds to wait between two task executions",
    )

    # Batch item processing
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE, ge=1, description="Items per processing batch"
    )
    item_delay: float = Field(
        default=DEFAULT_ITEM_DELAY, description="Seconds to wait after each item"
    )
    batch_delay: float = Field(
        default=DEFAULT_BATCH_DELAY, description="Seconds to wait after each batch"
    )

    # Control API
    status_log_limit: int = Field(
        default=DEFAULT_STATUS_LOG_LIMIT,
        description="Log entries returned with a task status",
    )
    task_list_limit: int = Field(
        default=DEFAULT_TASK_LIST_LIMIT, description="Tasks returned by a listing"
    )

    # Notifications
    notify_on_task_completion: bool = Field(
        default=True, description="Send a notification when a task completes"
    )
    notify_on_task_failure: bool = Field(
        default=True, description="Send a notification when a task fails"
    )
    include_task_details: bool = Field(
        default=True, description="Include task results in notifications"
    )
    include_error_logs: bool = Field(
        default=False, description="Include error lines in failure notifications"
    )
    admin_emails: list[str] = Field(
        default_factory=list, description="Notification email recipients"
    )
    smtp_host: str = Field(default="", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: str = Field(default="", description="SMTP username")
    smtp_password: str = Field(default="", description="SMTP password")
    from_email: str = Field(default="", description="Notification sender address")
    from_name: str = Field(default="BulkTask System", description="Sender name")
    notification_webhook_url: str = Field(
        default="", description="Webhook receiving task notifications as JSON"
    )

    # External collaborators
    identity_api_base_url: str = Field(
        default="", description="Identity provisioning service base URL"
    )
    records_api_base_url: str = Field(
        default="", description="Domain record service base URL"
    )
    http_timeout: float = Field(
        default=DEFAULT_HTTP_TIMEOUT, description="Timeout for collaborator calls"
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        # Tests drive the worker explicitly
        if self.environment == Environment.TESTING:
            self.worker_autostart = False

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == Environment.TESTING

    @property
    def email_enabled(self) -> bool:
        """Email notifications need a host, a username and recipients."""
        return bool(self.smtp_host and self.smtp_username and self.admin_emails)

    @property
    def provisioning_enabled(self) -> bool:
        """Bulk account handlers need both collaborator URLs."""
        return bool(self.identity_api_base_url and self.records_api_base_url)


def _parse_list(raw: str) -> list[str]:
    return [value.strip() for value in raw.split(",") if value.strip()]


def load_settings() -> Settings:
    """Load settings from environment variables."""

    # Load .env file if it exists
    load_dotenv()

    cors_origins_str = os.getenv("BULKTASK_CORS_ORIGINS", "*")
    if cors_origins_str == "*":
        cors_origins = ["*"]
    else:
        cors_origins = _parse_list(cors_origins_str)

    database_path_str = os.getenv("BULKTASK_DATABASE_PATH")

    return Settings(
        environment=Environment(os.getenv("BULKTASK_ENV", "development")),
        api_title=os.getenv("BULKTASK_API_TITLE", "BulkTask API"),
        api_version=os.getenv("BULKTASK_API_VERSION", "1.0.0"),
        cors_allow_origins=cors_origins,
        log_level=os.getenv("BULKTASK_LOG_LEVEL", "INFO").upper(),
        log_to_file=os.getenv("BULKTASK_LOG_TO_FILE", "false").lower() in TRUE_VALUES,
        database_path=Path(database_path_str) if database_path_str else None,
        worker_autostart=os.getenv("BULKTASK_WORKER_AUTOSTART", "true").lower()
        in TRUE_VALUES,
        idle_poll_interval=float(
            os.getenv("BULKTASK_IDLE_POLL_INTERVAL", str(DEFAULT_IDLE_POLL_INTERVAL))
        ),
        inter_task_delay=float(
            os.getenv("BULKTASK_INTER_TASK_DELAY", str(DEFAULT_INTER_TASK_DELAY))
        ),
        batch_size=int(os.getenv("BULKTASK_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))),
        item_delay=float(os.getenv("BULKTASK_ITEM_DELAY", str(DEFAULT_ITEM_DELAY))),
        batch_delay=float(os.getenv("BULKTASK_BATCH_DELAY", str(DEFAULT_BATCH_DELAY))),
        status_log_limit=int(
            os.getenv("BULKTASK_STATUS_LOG_LIMIT", str(DEFAULT_STATUS_LOG_LIMIT))
        ),
        task_list_limit=int(
            os.getenv("BULKTASK_TASK_LIST_LIMIT", str(DEFAULT_TASK_LIST_LIMIT))
        ),
        notify_on_task_completion=os.getenv(
            "BULKTASK_NOTIFY_ON_COMPLETION", "true"
        ).lower()
        in TRUE_VALUES,
        notify_on_task_failure=os.getenv("BULKTASK_NOTIFY_ON_FAILURE", "true").lower()
        in TRUE_VALUES,
        include_task_details=os.getenv(
            "BULKTASK_INCLUDE_TASK_DETAILS", "true"
        ).lower()
        in TRUE_VALUES,
        include_error_logs=os.getenv("BULKTASK_INCLUDE_ERROR_LOGS", "false").lower()
        in TRUE_VALUES,
        admin_emails=_parse_list(os.getenv("BULKTASK_ADMIN_EMAILS", "")),
        smtp_host=os.getenv("BULKTASK_SMTP_HOST", ""),
        smtp_port=int(os.getenv("BULKTASK_SMTP_PORT", "587")),
        smtp_username=os.getenv("BULKTASK_SMTP_USERNAME", ""),
        smtp_password=os.getenv("BULKTASK_SMTP_PASSWORD", ""),
        from_email=os.getenv("BULKTASK_FROM_EMAIL", ""),
        from_name=os.getenv("BULKTASK_FROM_NAME", "BulkTask System"),
        notification_webhook_url=os.getenv("BULKTASK_NOTIFICATION_WEBHOOK_URL", ""),
        identity_api_base_url=os.getenv("BULKTASK_IDENTITY_API_BASE_URL", ""),
        records_api_base_url=os.getenv("BULKTASK_RECORDS_API_BASE_URL", ""),
        http_timeout=float(
            os.getenv("BULKTASK_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
        ),
    )


# Global settings instance
settings = load_settings()

"""Task completion notification dispatch."""

from core.batch.state_manager import TaskStateManager
from core.config import Settings
from core.log import get_logger
from core.models.domain.task import TaskNotification
from core.notifications.channels import (
    EmailNotificationChannel,
    LogNotificationChannel,
    NotificationChannel,
    WebhookNotificationChannel,
)
from core.notifications.templates import RenderOptions
from core.types import BackgroundTaskStatus
from core.utils import format_duration

logger = get_logger(__name__)


class NotificationDispatcher:
    """Fans a finished task's summary out to every configured channel.

    Dispatch is fire-and-forget: a failing channel is logged and the
    remaining channels still run. Nothing is ever raised to the caller.
    """

    def __init__(
        self,
        state_manager: TaskStateManager,
        channels: list[NotificationChannel] | None = None,
        notify_on_completion: bool = True,
        notify_on_failure: bool = True,
        options: RenderOptions | None = None,
    ) -> None:
        self._state_manager = state_manager
        self.channels = channels if channels is not None else [LogNotificationChannel()]
        self.notify_on_completion = notify_on_completion
        self.notify_on_failure = notify_on_failure
        self.options = options or RenderOptions()

    @classmethod
    def from_settings(
        cls, settings: Settings, state_manager: TaskStateManager
    ) -> "NotificationDispatcher":
        """Build a dispatcher with the channels the settings enable."""
        channels: list[NotificationChannel] = [LogNotificationChannel()]
        if settings.email_enabled:
            channels.append(
                EmailNotificationChannel(
                    host=settings.smtp_host,
                    port=settings.smtp_port,
                    username=settings.smtp_username,
                    password=settings.smtp_password,
                    from_email=settings.from_email,
                    from_name=settings.from_name,
                    recipients=settings.admin_emails,
                )
            )
        if settings.notification_webhook_url:
            channels.append(
                WebhookNotificationChannel(
                    settings.notification_webhook_url, timeout=settings.http_timeout
                )
            )

        logger.info(
            f"Notification channels: {', '.join(channel.name for channel in channels)}"
        )
        return cls(
            state_manager,
            channels=channels,
            notify_on_completion=settings.notify_on_task_completion,
            notify_on_failure=settings.notify_on_task_failure,
            options=RenderOptions(
                include_task_details=settings.include_task_details,
                include_error_logs=settings.include_error_logs,
            ),
        )

    def should_notify(self, status: BackgroundTaskStatus) -> bool:
        if status == BackgroundTaskStatus.COMPLETED:
            return self.notify_on_completion
        if status == BackgroundTaskStatus.FAILED:
            return self.notify_on_failure
        return False

    async def send(
        self,
        task_id: str,
        status: BackgroundTaskStatus,
        duration_ms: float | None = None,
    ) -> TaskNotification | None:
        """Notify about a task that reached COMPLETED or FAILED.

        Args:
            task_id: The finished task
            status: The terminal status it reached
            duration_ms: Execution time, when known

        Returns:
            The notification that was sent, or None if nothing was sent
        """
        if not self.should_notify(status):
            logger.debug(f"Notifications disabled for {status.value} tasks")
            return None

        try:
            notification = self._build_notification(task_id, status, duration_ms)
        except Exception as e:
            logger.error(f"Failed to build notification for task {task_id}: {e}")
            return None
        if notification is None:
            logger.warning(f"Task {task_id} not found, skipping notification")
            return None

        for channel in self.channels:
            try:
                await channel.send(notification, self.options)
            except Exception as e:
                logger.error(
                    f"Failed to send {channel.name} notification for task "
                    f"{task_id}: {e}"
                )

        return notification

    def _build_notification(
        self,
        task_id: str,
        status: BackgroundTaskStatus,
        duration_ms: float | None,
    ) -> TaskNotification | None:
        task = self._state_manager.get_task(task_id)
        if task is None:
            return None

        return TaskNotification(
            task_id=task.id,
            task_type=task.task_type,
            title=task.title,
            status=status,
            processed_items=task.processed_items,
            total_items=task.total_items,
            failed_items=task.failed_items,
            percentage=task.percentage,
            results=task.results,
            errors=list(task.errors or []),
            duration=format_duration(duration_ms) if duration_ms is not None else None,
            branch_id=task.branch_id,
        )

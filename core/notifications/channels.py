"""Delivery channels for task notifications."""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

import httpx

from core.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from core.log import get_logger
from core.models.domain.task import TaskNotification
from core.notifications.templates import (
    RenderOptions,
    render_notification,
    visible_errors,
)

logger = get_logger(__name__)


class NotificationChannel(ABC):
    """A destination for task completion and failure notifications."""

    name: str = "channel"

    @abstractmethod
    async def send(
        self, notification: TaskNotification, options: RenderOptions
    ) -> None:
        """Deliver one notification; raise on delivery failure."""
        pass


class LogNotificationChannel(NotificationChannel):
    """Writes a one-line summary to the process log."""

    name = "log"

    async def send(
        self, notification: TaskNotification, options: RenderOptions
    ) -> None:
        message = (
            f"Task {notification.status.value}: {notification.title} "
            f"({notification.processed_items}/{notification.total_items} items, "
            f"{notification.failed_items} failed"
        )
        if notification.duration:
            message += f", {notification.duration}"
        message += ")"

        if notification.succeeded:
            logger.info(message)
        else:
            logger.warning(message)


class EmailNotificationChannel(NotificationChannel):
    """Sends a text and HTML email to the configured recipients over SMTP."""

    name = "email"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str,
        recipients: list[str],
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.from_name = from_name
        self.recipients = recipients

    def build_message(
        self, notification: TaskNotification, options: RenderOptions
    ) -> EmailMessage:
        rendered = render_notification(notification, options)
        message = EmailMessage()
        message["Subject"] = rendered.subject
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = ", ".join(self.recipients)
        message.set_content(rendered.text)
        message.add_alternative(rendered.html, subtype="html")
        return message

    async def send(
        self, notification: TaskNotification, options: RenderOptions
    ) -> None:
        if not self.recipients:
            logger.warning("No email recipients configured, skipping email")
            return

        message = self.build_message(notification, options)
        await asyncio.to_thread(self._deliver, message)
        logger.info(
            f"Task notification email sent to {len(self.recipients)} recipients"
        )

    def _deliver(self, message: EmailMessage) -> None:
        # Port 465 is implicit TLS; anything else upgrades with STARTTLS
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port) as smtp:
                smtp.login(self.username, self.password)
                smtp.send_message(message)
            return

        with smtplib.SMTP(self.host, self.port) as smtp:
            smtp.starttls()
            smtp.login(self.username, self.password)
            smtp.send_message(message)


class WebhookNotificationChannel(NotificationChannel):
    """POSTs the notification as JSON to a webhook URL."""

    name = "webhook"

    def __init__(self, url: str, timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout

    def build_payload(
        self, notification: TaskNotification, options: RenderOptions
    ) -> dict[str, object]:
        payload = notification.model_dump(mode="json", exclude={"errors", "results"})
        if options.include_task_details:
            payload["results"] = notification.results
        payload["errors"] = visible_errors(notification, options)
        payload["error_count"] = len(notification.errors)
        return payload

    async def send(
        self, notification: TaskNotification, options: RenderOptions
    ) -> None:
        payload = self.build_payload(notification, options)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": DEFAULT_USER_AGENT},
        ) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()
        logger.debug(f"Webhook notification delivered for task {notification.task_id}")

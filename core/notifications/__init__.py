"""Task notification dispatch and channels."""

from .channels import (
    EmailNotificationChannel,
    LogNotificationChannel,
    NotificationChannel,
    WebhookNotificationChannel,
)
from .dispatcher import NotificationDispatcher
from .templates import RenderOptions, render_notification

__all__ = [
    "EmailNotificationChannel",
    "LogNotificationChannel",
    "NotificationChannel",
    "NotificationDispatcher",
    "RenderOptions",
    "WebhookNotificationChannel",
    "render_notification",
]

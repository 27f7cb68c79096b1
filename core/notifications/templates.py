"""Rendering of task notification messages."""

import json
from html import escape

from pydantic import BaseModel

from core.constants import MAX_NOTIFIED_ERRORS
from core.models.domain.task import TaskNotification
from core.types import BackgroundTaskStatus

SUBJECT_PREFIX = "[BulkTask]"


class RenderOptions(BaseModel):
    """Which optional sections a rendered notification contains."""

    include_task_details: bool = True
    include_error_logs: bool = False


class RenderedNotification(BaseModel):
    subject: str
    text: str
    html: str


def build_subject(notification: TaskNotification) -> str:
    status = "Completed" if notification.succeeded else "Failed"
    return f"{SUBJECT_PREFIX} Background Task {status}: {notification.title}"


def visible_errors(notification: TaskNotification, options: RenderOptions) -> list[str]:
    """Error lines shown in a notification; only failed tasks carry them."""
    if not options.include_error_logs:
        return []
    if notification.status != BackgroundTaskStatus.FAILED:
        return []
    return [str(error) for error in notification.errors[:MAX_NOTIFIED_ERRORS]]


def hidden_error_count(notification: TaskNotification) -> int:
    return max(len(notification.errors) - MAX_NOTIFIED_ERRORS, 0)


def render_text(notification: TaskNotification, options: RenderOptions) -> str:
    """Plain text body."""
    lines = [
        f"Task {notification.status.value}: {notification.title}",
        "",
        f"Task Type: {notification.task_type}",
        f"Status: {notification.status.value}",
        f"Progress: {notification.processed_items}/{notification.total_items} items "
        f"({notification.percentage}%)",
    ]
    if notification.failed_items:
        lines.append(f"Failed Items: {notification.failed_items}")
    if notification.duration:
        lines.append(f"Duration: {notification.duration}")

    if options.include_task_details and notification.results:
        lines += ["", "Task Results:", json.dumps(notification.results, indent=2)]

    errors = visible_errors(notification, options)
    if errors:
        lines += ["", "Error Details:"]
        lines += [f"- {error}" for error in errors]
        hidden = hidden_error_count(notification)
        if hidden:
            lines.append(f"... and {hidden} more errors")

    lines += ["", "This is an automated notification from the BulkTask system."]
    return "\n".join(lines)


def render_html(notification: TaskNotification, options: RenderOptions) -> str:
    """HTML body with the same sections as the text body."""
    color = "#10b981" if notification.succeeded else "#ef4444"
    rows = [
        ("Task Type", escape(notification.task_type)),
        ("Status", escape(notification.status.value)),
        (
            "Progress",
            f"{notification.processed_items}/{notification.total_items} items "
            f"({notification.percentage}%)",
        ),
    ]
    if notification.failed_items:
        rows.append(("Failed Items", str(notification.failed_items)))
    if notification.duration:
        rows.append(("Duration", escape(notification.duration)))

    parts = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="utf-8"><title>Task Notification</title></head>',
        '<body style="font-family: sans-serif; color: #333;">',
        f'<div style="background: {color}; color: white; padding: 16px;">',
        f"<h1>Task {escape(notification.status.value)}</h1>",
        f"<p>{escape(notification.title)}</p>",
        "</div>",
        f"<p>A background task has {notification.status.value.lower()}. "
        "Here are the details:</p>",
        "<table>",
    ]
    parts += [
        f"<tr><th align='left'>{label}:</th><td>{value}</td></tr>"
        for label, value in rows
    ]
    parts.append("</table>")

    if options.include_task_details and notification.results:
        results = escape(json.dumps(notification.results, indent=2))
        parts += ["<h3>Task Results</h3>", f"<pre>{results}</pre>"]

    errors = visible_errors(notification, options)
    if errors:
        parts += ['<h3 style="color: #dc2626;">Error Details</h3>', "<ul>"]
        parts += [f"<li>{escape(error)}</li>" for error in errors]
        hidden = hidden_error_count(notification)
        if hidden:
            parts.append(f"<li><em>... and {hidden} more errors</em></li>")
        parts.append("</ul>")

    parts += [
        "<p><small>This is an automated notification from the BulkTask system."
        "</small></p>",
        "</body></html>",
    ]
    return "\n".join(parts)


def render_notification(
    notification: TaskNotification, options: RenderOptions
) -> RenderedNotification:
    return RenderedNotification(
        subject=build_subject(notification),
        text=render_text(notification, options),
        html=render_html(notification, options),
    )

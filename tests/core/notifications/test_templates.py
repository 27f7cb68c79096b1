"""Tests for notification rendering."""

from core.models.domain.task import TaskNotification
from core.notifications.templates import (
    RenderOptions,
    build_subject,
    render_html,
    render_notification,
    render_text,
)
from core.types import BackgroundTaskStatus


def make_notification(
    status: BackgroundTaskStatus = BackgroundTaskStatus.COMPLETED,
    errors: list[str] | None = None,
    **fields,
) -> TaskNotification:
    values = {
        "task_id": "t1",
        "task_type": "BULK_ACCOUNT_CREATION",
        "title": "Import <students>",
        "status": status,
        "processed_items": 10,
        "total_items": 10,
        "failed_items": len(errors or []),
        "percentage": 100,
        "results": {"success": 10, "failed": 0},
        "errors": errors or [],
        "duration": "1m 5s",
    }
    values.update(fields)
    return TaskNotification(**values)


def test_subject() -> None:
    assert (
        build_subject(make_notification())
        == "[BulkTask] Background Task Completed: Import <students>"
    )
    assert (
        build_subject(make_notification(BackgroundTaskStatus.FAILED))
        == "[BulkTask] Background Task Failed: Import <students>"
    )


def test_text_body_sections() -> None:
    text = render_text(make_notification(), RenderOptions())

    assert "Task Type: BULK_ACCOUNT_CREATION" in text
    assert "Progress: 10/10 items (100%)" in text
    assert "Duration: 1m 5s" in text
    assert "Task Results:" in text
    assert "Failed Items" not in text


def test_task_details_can_be_disabled() -> None:
    options = RenderOptions(include_task_details=False)

    assert "Task Results" not in render_text(make_notification(), options)
    assert "Task Results" not in render_html(make_notification(), options)


def test_error_logs_truncated_for_failed_tasks() -> None:
    errors = [f"Failed to create student P{i} Test: boom" for i in range(8)]
    notification = make_notification(BackgroundTaskStatus.FAILED, errors=errors)
    options = RenderOptions(include_error_logs=True)

    text = render_text(notification, options)
    assert "Failed Items: 8" in text
    assert "- Failed to create student P4 Test: boom" in text
    assert "P5 Test" not in text
    assert "... and 3 more errors" in text

    html = render_html(notification, options)
    assert html.count("Failed to create student") == 5
    assert "... and 3 more errors" in html


def test_error_logs_omitted_when_disabled_or_completed() -> None:
    errors = ["Failed to create student A B: boom"]
    failed = make_notification(BackgroundTaskStatus.FAILED, errors=errors)
    completed = make_notification(errors=errors)

    assert "Error Details" not in render_text(failed, RenderOptions())
    assert "Error Details" not in render_text(
        completed, RenderOptions(include_error_logs=True)
    )


def test_html_escapes_user_text() -> None:
    rendered = render_notification(make_notification(), RenderOptions())

    assert "Import &lt;students&gt;" in rendered.html
    assert "<students>" not in rendered.html
    assert rendered.subject.startswith("[BulkTask]")
    assert rendered.text.startswith("Task COMPLETED: Import <students>")

"""Utility functions for the application."""

from datetime import UTC, datetime
from typing import Any

from core.log import get_logger

logger = get_logger(__name__)


def get_current_timestamp() -> str:
    """Get current timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


def parse_datetime(date_str: str | None) -> datetime | None:
    """Parse datetime string to Python datetime object."""
    if not date_str:
        return None

    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Could not parse date: {date_str}")
        return None


def compute_percentage(processed: int, total: int) -> int:
    """Compute the progress percentage from item counts.

    Args:
        processed: Number of items processed so far (success + failed)
        total: Total number of items in the task

    Returns:
        Rounded percentage in the range 0-100, 0 when total is 0
    """
    if total <= 0:
        return 0
    percentage = round(processed / total * 100)
    return max(0, min(100, percentage))


def count_input_items(input_data: Any) -> int:
    """Count the sub-items of a task payload.

    Only a list under the "items" key counts; any other shape has no items.
    """
    if isinstance(input_data, dict):
        items = input_data.get("items")
        if isinstance(items, list):
            return len(items)
    return 0


def format_duration(milliseconds: float) -> str:
    """Format a duration as "1h 2m 3s", "2m 3s" or "3s"."""
    seconds = int(milliseconds // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"

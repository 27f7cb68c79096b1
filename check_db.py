#!/usr/bin/env python3
"""Check database for stored background tasks and their status."""

from collections import Counter

from sqlmodel import Session, select

from core.config import load_settings
from core.database.engine import create_database_engine
from core.models.rows import BackgroundTask


def check_database() -> None:
    """Print task counts per status and the most recent tasks."""
    settings = load_settings()
    engine = create_database_engine(
        settings.environment, db_path=settings.database_path
    )

    with Session(engine) as session:
        tasks = session.exec(select(BackgroundTask)).all()

    print(f"Total tasks in database: {len(tasks)}")
    for status, count in sorted(Counter(task.status.value for task in tasks).items()):
        print(f"  {status}: {count}")

    print("\nMost recent tasks:")
    print("-" * 80)
    for task in sorted(tasks, key=lambda t: t.created_at, reverse=True)[:10]:
        print(f"ID: {task.id}")
        print(f"Title: {task.title[:60]}")
        print(f"Type: {task.task_type}  Priority: {task.priority}")
        print(
            f"Status: {task.status.value}  "
            f"Progress: {task.processed_items}/{task.total_items} "
            f"({task.failed_items} failed)"
        )
        print("-" * 80)


if __name__ == "__main__":
    check_database()

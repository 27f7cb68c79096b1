"""Tests for the task scheduler worker loop."""

import asyncio
from typing import Any
from unittest.mock import patch

import pytest

from core.batch.registry import ItemProcessorRegistry
from core.batch.state_manager import INTERRUPTED_ERROR, TaskStateManager
from core.batch.task_scheduler import TaskScheduler
from core.types import BackgroundTaskStatus, LogLevel, TaskType

from tests.utils.test_helpers import (
    RecordingChannel,
    TaskFactory,
    make_handler,
    make_people,
)

CREATION = TaskType.BULK_ACCOUNT_CREATION.value


async def wait_for_status(
    state_manager: TaskStateManager,
    task_id: str,
    status: BackgroundTaskStatus,
    timeout: float = 2.0,
) -> None:
    async def poll() -> None:
        while state_manager.get_status(task_id) != status:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout=timeout)


def create_task(
    state_manager: TaskStateManager,
    count: int = 3,
    kind: str = "student",
    **fields: Any,
) -> str:
    task = state_manager.create_task(
        TaskFactory.create_task(
            input_data={"kind": kind, "items": make_people(count)}, **fields
        )
    )
    return task.id


@pytest.mark.asyncio
async def test_process_task_completes_with_item_failure(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
    recording_channel: RecordingChannel,
) -> None:
    """3 items with one failing: COMPLETED and exactly one notification."""
    registry.register_item_handler(
        CREATION, "student", make_handler(fail_on={"Person2"})
    )
    task_id = create_task(state_manager, 3, title="Import students")

    status = await scheduler.process_task(task_id)

    assert status == BackgroundTaskStatus.COMPLETED
    task = state_manager.require_task(task_id)
    assert task.status == BackgroundTaskStatus.COMPLETED
    assert task.processed_items == 3
    assert task.failed_items == 1
    assert len(task.errors) == 1
    assert task.results["success"] == 2
    assert task.results["failed"] == 1
    assert task.completed_at is not None

    assert len(recording_channel.sent) == 1
    notification = recording_channel.sent[0]
    assert notification.status == BackgroundTaskStatus.COMPLETED
    assert notification.failed_items == 1
    assert notification.duration is not None

    messages = [
        entry.message for entry in state_manager.get_recent_logs(task_id, limit=50)
    ]
    assert "Starting task processing: Import students" in messages
    assert any(m.startswith("Task completed successfully in ") for m in messages)
    assert scheduler.current_task_id is None


@pytest.mark.asyncio
async def test_process_task_unknown_type_fails(
    state_manager: TaskStateManager,
    scheduler: TaskScheduler,
    recording_channel: RecordingChannel,
) -> None:
    task_id = create_task(state_manager, task_type="NOT_REGISTERED")

    status = await scheduler.process_task(task_id)

    assert status == BackgroundTaskStatus.FAILED
    task = state_manager.require_task(task_id)
    assert task.status == BackgroundTaskStatus.FAILED
    assert task.errors == ["Unknown task type: NOT_REGISTERED"]
    assert task.completed_at is not None

    assert [n.status for n in recording_channel.sent] == [BackgroundTaskStatus.FAILED]
    logs = state_manager.get_recent_logs(task_id)
    assert logs[0].level == LogLevel.ERROR
    assert logs[0].message == "Task failed: Unknown task type: NOT_REGISTERED"


@pytest.mark.asyncio
async def test_process_task_missing_item_handler_fails(
    state_manager: TaskStateManager, scheduler: TaskScheduler
) -> None:
    task_id = create_task(state_manager, kind="alumni")

    assert await scheduler.process_task(task_id) == BackgroundTaskStatus.FAILED
    assert state_manager.require_task(task_id).errors == [
        f"Unknown item kind for {CREATION}: alumni"
    ]


@pytest.mark.asyncio
async def test_process_task_skips_ineligible(
    state_manager: TaskStateManager, scheduler: TaskScheduler
) -> None:
    task_id = create_task(state_manager, status=BackgroundTaskStatus.PAUSED)

    assert await scheduler.process_task(task_id) is None
    assert state_manager.get_status(task_id) == BackgroundTaskStatus.PAUSED


@pytest.mark.asyncio
async def test_cancel_during_run_keeps_cancelled(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
    recording_channel: RecordingChannel,
) -> None:
    task_ids: list[str] = []

    async def cancel_on_first(item: dict[str, Any]) -> None:
        state_manager.transition_task(
            task_ids[0],
            [BackgroundTaskStatus.RUNNING],
            status=BackgroundTaskStatus.CANCELLED,
        )

    registry.register_item_handler(
        CREATION, "student", make_handler(on_call=cancel_on_first)
    )
    task_ids.append(create_task(state_manager, 3))

    status = await scheduler.process_task(task_ids[0])

    assert status == BackgroundTaskStatus.CANCELLED
    task = state_manager.require_task(task_ids[0])
    assert task.status == BackgroundTaskStatus.CANCELLED
    assert task.processed_items == 1
    assert recording_channel.sent == []
    assert state_manager.get_recent_logs(task_ids[0])[0].level == LogLevel.WARN


@pytest.mark.asyncio
async def test_start_processing_is_idempotent(scheduler: TaskScheduler) -> None:
    assert scheduler.start_processing() is True
    loop_task = scheduler._loop_task

    assert scheduler.start_processing() is False
    assert scheduler._loop_task is loop_task
    assert scheduler.is_processing is True

    await scheduler.stop_processing()
    assert scheduler.is_processing is False
    assert scheduler.get_status().current_task_id is None


@pytest.mark.asyncio
async def test_loop_runs_higher_priority_first(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
) -> None:
    """A priority 1 task finishes before a priority 5 task starts."""
    calls: list[str] = []
    registry.register_item_handler(CREATION, "student", make_handler(calls=calls))
    registry.register_item_handler(CREATION, "teacher", make_handler(calls=calls))

    low = create_task(state_manager, 2, kind="teacher", priority=5)
    high = create_task(state_manager, 2, kind="student", priority=1)

    scheduler.start_processing()
    try:
        await wait_for_status(state_manager, low, BackgroundTaskStatus.COMPLETED)
    finally:
        await scheduler.stop_processing()

    assert calls == ["Person1", "Person2", "Person1", "Person2"]
    high_task = state_manager.require_task(high)
    low_task = state_manager.require_task(low)
    assert high_task.status == BackgroundTaskStatus.COMPLETED
    assert high_task.completed_at <= low_task.started_at


@pytest.mark.asyncio
async def test_wake_ends_idle_wait(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
) -> None:
    registry.register_item_handler(CREATION, "student", make_handler())
    scheduler._idle_poll_interval = 30

    scheduler.start_processing()
    try:
        await asyncio.sleep(0.05)
        task_id = create_task(state_manager, 1)
        scheduler.wake()
        await wait_for_status(
            state_manager, task_id, BackgroundTaskStatus.COMPLETED, timeout=1.0
        )
    finally:
        await scheduler.stop_processing()


@pytest.mark.asyncio
async def test_loop_error_stops_until_restart(
    state_manager: TaskStateManager, scheduler: TaskScheduler
) -> None:
    with patch.object(
        state_manager, "find_next_eligible", side_effect=RuntimeError("db gone")
    ):
        scheduler.start_processing()

        async def stopped() -> None:
            while scheduler.is_processing:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(stopped(), timeout=1.0)

    assert scheduler.is_processing is False
    assert scheduler.restart_processing() is True
    assert scheduler.is_processing is True
    assert scheduler.restart_processing() is False

    await scheduler.stop_processing()


@pytest.mark.asyncio
async def test_shutdown_marks_running_task_failed(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
    recording_channel: RecordingChannel,
) -> None:
    entered = asyncio.Event()
    never = asyncio.Event()

    async def block(item: dict[str, Any]) -> None:
        entered.set()
        await never.wait()

    registry.register_item_handler(CREATION, "student", make_handler(on_call=block))
    task_id = create_task(state_manager, 2)

    scheduler.start_processing()
    await asyncio.wait_for(entered.wait(), timeout=1.0)
    assert scheduler.current_task_id == task_id

    await scheduler.shutdown()

    task = state_manager.require_task(task_id)
    assert task.status == BackgroundTaskStatus.FAILED
    assert task.errors == [INTERRUPTED_ERROR]
    assert recording_channel.sent == []
    assert scheduler.is_processing is False


@pytest.mark.asyncio
async def test_start_recovers_interrupted_tasks(
    state_manager: TaskStateManager, scheduler: TaskScheduler
) -> None:
    task_id = create_task(state_manager, status=BackgroundTaskStatus.RUNNING)

    scheduler.start_processing()
    await scheduler.stop_processing()

    task = state_manager.require_task(task_id)
    assert task.status == BackgroundTaskStatus.FAILED
    assert task.errors == [INTERRUPTED_ERROR]


@pytest.mark.asyncio
async def test_paused_task_resumes_with_full_results(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
) -> None:
    """Person1 fails, the task is paused on Person2, then resumed to the end."""
    task_ids: list[str] = []

    async def pause_on_second(item: dict[str, Any]) -> None:
        if item["firstName"] == "Person2":
            state_manager.transition_task(
                task_ids[0],
                [BackgroundTaskStatus.RUNNING],
                status=BackgroundTaskStatus.PAUSED,
            )

    registry.register_item_handler(
        CREATION,
        "student",
        make_handler(fail_on={"Person1"}, on_call=pause_on_second),
    )
    task_ids.append(create_task(state_manager, 4))
    task_id = task_ids[0]

    assert await scheduler.process_task(task_id) == BackgroundTaskStatus.PAUSED
    state_manager.transition_task(
        task_id, [BackgroundTaskStatus.PAUSED], status=BackgroundTaskStatus.PENDING
    )
    assert await scheduler.process_task(task_id) == BackgroundTaskStatus.COMPLETED

    task = state_manager.require_task(task_id)
    results = task.results
    assert results["success"] == len(results["processed_items"]) == 3
    assert results["failed"] == len(results["errors"]) == 1
    assert [record["id"] for record in results["processed_items"]] == [
        "rec-Person2",
        "rec-Person3",
        "rec-Person4",
    ]
    assert results["errors"] == task.errors
    assert task.processed_items == 4
    assert task.failed_items == 1


@pytest.mark.asyncio
async def test_start_while_stopping_is_rejected(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    scheduler: TaskScheduler,
) -> None:
    entered = asyncio.Event()
    release = asyncio.Event()

    async def gate(item: dict[str, Any]) -> None:
        entered.set()
        await release.wait()

    registry.register_item_handler(CREATION, "student", make_handler(on_call=gate))
    task_id = create_task(state_manager, 1)

    scheduler.start_processing()
    loop_task = scheduler._loop_task
    await asyncio.wait_for(entered.wait(), timeout=1.0)

    stopping = asyncio.create_task(scheduler.stop_processing())
    await asyncio.sleep(0)
    assert scheduler.is_processing is False

    # The loop is still finishing its task: no recovery, no second loop
    assert scheduler.start_processing() is False
    assert scheduler.restart_processing() is False
    assert scheduler._loop_task is loop_task
    assert state_manager.get_status(task_id) == BackgroundTaskStatus.RUNNING

    release.set()
    await asyncio.wait_for(stopping, timeout=1.0)

    task = state_manager.require_task(task_id)
    assert task.status == BackgroundTaskStatus.COMPLETED
    assert task.errors == []
    assert loop_task.done()
    assert scheduler._loop_task is None

    assert scheduler.start_processing() is True
    await scheduler.stop_processing()

"""Single-worker scheduler that claims and runs background tasks."""

import asyncio
import time
from typing import Any

from core.batch.execution_logger import TaskExecutionLogger
from core.batch.registry import ItemProcessorRegistry
from core.batch.state_manager import INTERRUPTED_ERROR, TaskStateManager
from core.constants import DEFAULT_IDLE_POLL_INTERVAL, DEFAULT_INTER_TASK_DELAY
from core.exceptions import TaskInterruptedError
from core.log import get_logger
from core.models.domain.task import ProcessingStatus, TaskContext
from core.notifications.dispatcher import NotificationDispatcher
from core.types import BackgroundTaskStatus
from core.utils import format_duration

logger = get_logger(__name__)


class TaskScheduler:
    """Polls the task store and runs one task at a time.

    ``is_processing`` and ``current_task_id`` are process-local and advisory;
    the task store is the source of truth for task state.
    """

    def __init__(
        self,
        state_manager: TaskStateManager,
        registry: ItemProcessorRegistry,
        execution_logger: TaskExecutionLogger,
        dispatcher: NotificationDispatcher,
        idle_poll_interval: float = DEFAULT_IDLE_POLL_INTERVAL,
        inter_task_delay: float = DEFAULT_INTER_TASK_DELAY,
    ) -> None:
        """Initialize the task scheduler.

        Args:
            state_manager: Task store facade
            registry: Strategy lookup by task type
            execution_logger: Task audit logger
            dispatcher: Completion notification dispatcher
            idle_poll_interval: Seconds to wait when no task is eligible
            inter_task_delay: Seconds to wait between two tasks
        """
        self._state_manager = state_manager
        self._registry = registry
        self._execution_logger = execution_logger
        self._dispatcher = dispatcher
        self._idle_poll_interval = idle_poll_interval
        self._inter_task_delay = inter_task_delay

        self._current_task_id: str | None = None
        self._loop_task: asyncio.Task[Any] | None = None
        # Each loop owns its stop event; a stopping loop is still active
        self._stop_event = asyncio.Event()
        self._wake_event = asyncio.Event()

    @property
    def is_processing(self) -> bool:
        return self._loop_active() and not self._stop_event.is_set()

    @property
    def current_task_id(self) -> str | None:
        return self._current_task_id

    def get_status(self) -> ProcessingStatus:
        return ProcessingStatus(
            is_processing=self.is_processing, current_task_id=self._current_task_id
        )

    def _loop_active(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start_processing(self) -> bool:
        """Start the worker loop if no loop is alive.

        A loop that is still finishing its current task after
        ``stop_processing`` counts as alive. Must be called from a running
        event loop.

        Returns:
            True if a new loop was started, False if one was already active
        """
        if self._loop_active():
            if self._stop_event.is_set():
                logger.info("Task processing is stopping, not starting a new loop")
            else:
                logger.info("Task processing is already running")
            return False

        # No loop is alive, so anything still RUNNING was left by a dead worker
        recovered = self._state_manager.recover_interrupted_tasks()
        for task_id in recovered:
            self._execution_logger.error(task_id, INTERRUPTED_ERROR)

        logger.info("Starting background task processing")
        self._stop_event = asyncio.Event()
        self._wake_event = asyncio.Event()
        self._loop_task = asyncio.create_task(
            self._run_loop(self._stop_event, self._wake_event)
        )
        return True

    def restart_processing(self) -> bool:
        """Start processing again after the loop stopped on a fatal error."""
        if self._loop_active():
            logger.info("Task processing is active, restart not needed")
            return False
        logger.info("Restarting background task processing")
        return self.start_processing()

    def wake(self) -> None:
        """End the current idle wait early; no effect when not idle."""
        self._wake_event.set()

    async def stop_processing(self) -> None:
        """Stop the loop after the current task and wait for it to exit."""
        loop_task = self._loop_task
        if loop_task is None:
            logger.warning("Task processing is not running")
            return

        logger.info("Stopping background task processing")
        self._stop_event.set()
        self._wake_event.set()
        try:
            await loop_task
        except asyncio.CancelledError:
            pass
        if self._loop_task is loop_task:
            self._loop_task = None
        logger.info("Background task processing stopped")

    async def shutdown(self) -> None:
        """Cancel the loop immediately; a running task is marked FAILED."""
        loop_task = self._loop_task
        if loop_task is None:
            return

        self._stop_event.set()
        loop_task.cancel()
        try:
            await loop_task
        except asyncio.CancelledError:
            pass
        if self._loop_task is loop_task:
            self._loop_task = None
        logger.info("Background task processing shut down")

    async def _run_loop(self, stop: asyncio.Event, wake: asyncio.Event) -> None:
        logger.info("Task worker loop started")
        try:
            while not stop.is_set():
                task = self._state_manager.find_next_eligible()
                if task is None:
                    await self._idle_wait(wake)
                    continue

                await self.process_task(task.id)
                if not stop.is_set():
                    await asyncio.sleep(self._inter_task_delay)
        except asyncio.CancelledError:
            logger.info("Task worker loop cancelled")
            raise
        except Exception as e:
            logger.exception(f"Task worker loop stopped on unexpected error: {e}")
        finally:
            self._current_task_id = None
            logger.info("Task worker loop exited")

    async def _idle_wait(self, wake: asyncio.Event) -> None:
        try:
            await asyncio.wait_for(wake.wait(), timeout=self._idle_poll_interval)
        except asyncio.TimeoutError:
            pass
        wake.clear()

    async def process_task(self, task_id: str) -> BackgroundTaskStatus | None:
        """Run one task to a terminal status.

        Returns:
            The status the task ended in, or None if it could not be claimed
        """
        task = self._state_manager.mark_running(task_id)
        if task is None:
            logger.warning(f"Task {task_id} is no longer eligible, skipping")
            return None

        self._current_task_id = task_id
        started = time.monotonic()
        self._execution_logger.info(
            task_id, f"Starting task processing: {task.title}"
        )

        try:
            try:
                strategy = self._registry.get_strategy(task.task_type)
                result = await strategy(TaskContext.from_task(task), task.input_data)
            except TaskInterruptedError as e:
                self._execution_logger.warn(
                    task_id,
                    f"Task processing stopped: task is {e.status}",
                    processed_items=e.processed,
                )
                logger.info(f"Task {task_id} interrupted ({e.status})")
                return BackgroundTaskStatus(e.status)
            except asyncio.CancelledError:
                self._state_manager.fail_task(task_id, INTERRUPTED_ERROR)
                self._execution_logger.error(task_id, INTERRUPTED_ERROR)
                raise
            except Exception as e:
                error = str(e) or type(e).__name__
                duration_ms = (time.monotonic() - started) * 1000
                return await self._finish_failed(task_id, error, duration_ms)

            duration_ms = (time.monotonic() - started) * 1000
            return await self._finish_completed(
                task_id, result.to_results(), duration_ms
            )
        finally:
            self._current_task_id = None

    async def _finish_completed(
        self, task_id: str, results: dict[str, Any], duration_ms: float
    ) -> BackgroundTaskStatus | None:
        if not self._state_manager.complete_task(task_id, results):
            return self._left_running(task_id)

        self._execution_logger.info(
            task_id, f"Task completed successfully in {format_duration(duration_ms)}"
        )
        await self._dispatcher.send(
            task_id, BackgroundTaskStatus.COMPLETED, duration_ms=duration_ms
        )
        return BackgroundTaskStatus.COMPLETED

    async def _finish_failed(
        self, task_id: str, error: str, duration_ms: float
    ) -> BackgroundTaskStatus | None:
        logger.error(f"Task {task_id} failed: {error}")
        if not self._state_manager.fail_task(task_id, error):
            return self._left_running(task_id)

        self._execution_logger.error(task_id, f"Task failed: {error}")
        await self._dispatcher.send(
            task_id, BackgroundTaskStatus.FAILED, duration_ms=duration_ms
        )
        return BackgroundTaskStatus.FAILED

    def _left_running(self, task_id: str) -> BackgroundTaskStatus | None:
        # Cancelled or paused while the last item was in flight
        status = self._state_manager.get_status(task_id)
        logger.info(
            f"Task {task_id} left RUNNING before finalization "
            f"({status.value if status else 'deleted'})"
        )
        return status

"""Batch item processing with per-item failure isolation."""

import asyncio
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from core.batch.execution_logger import TaskExecutionLogger
from core.batch.registry import ItemDescriber, ItemHandler, RetryItemHandler
from core.batch.state_manager import TaskStateManager
from core.constants import DEFAULT_BATCH_DELAY, DEFAULT_BATCH_SIZE, DEFAULT_ITEM_DELAY
from core.exceptions import TaskInterruptedError, TaskNotFoundError
from core.log import get_logger
from core.models.batch import BatchResult, ProcessedItemRecord
from core.models.domain.task import TaskContext
from core.types import BackgroundTaskStatus

logger = get_logger(__name__)

T = TypeVar("T")

INTERRUPTING_STATUSES = frozenset(
    {BackgroundTaskStatus.PAUSED, BackgroundTaskStatus.CANCELLED}
)


def describe_item(item: dict[str, Any], index: int) -> str:
    """Fallback name of an item for log and error lines."""
    for key in ("name", "title", "id"):
        if item.get(key):
            return str(item[key])
    return f"item {index + 1}"


def resume_result(context: TaskContext) -> BatchResult:
    """Result carried over from the runs before ``context.resume_offset``.

    Per-item detail is persisted with every progress update, so a resumed run
    continues the same success/failure lists the interrupted run was building.
    """
    if context.resume_offset == 0:
        return BatchResult()
    if context.results:
        return BatchResult.model_validate(context.results)

    # Counts were written without per-item detail
    logger.warning(
        f"Task {context.task_id} has no stored item detail; resuming from counts"
    )
    return BatchResult(
        success=max(context.processed_items - context.failed_items, 0),
        failed=context.failed_items,
    )


class BatchItemProcessor:
    """Runs a handler over a task's items in fixed-size batches.

    Items are processed one at a time in input order. A failing item is
    recorded and skipped; progress is persisted after every item. Before each
    item the task's status is re-read so that a pause or cancel issued through
    the control API stops the run at the next item boundary.
    """

    def __init__(
        self,
        state_manager: TaskStateManager,
        execution_logger: TaskExecutionLogger,
        batch_size: int = DEFAULT_BATCH_SIZE,
        item_delay: float = DEFAULT_ITEM_DELAY,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ) -> None:
        """Initialize the batch item processor.

        Args:
            state_manager: Task store facade
            execution_logger: Task audit logger
            batch_size: Number of items per batch
            item_delay: Seconds to sleep after each item
            batch_delay: Seconds to sleep between batches
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self._state_manager = state_manager
        self._execution_logger = execution_logger
        self._batch_size = batch_size
        self._item_delay = item_delay
        self._batch_delay = batch_delay

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def process_items(
        self,
        context: TaskContext,
        items: Sequence[dict[str, Any]],
        handler: ItemHandler,
        kind: str,
        scope: str | None = None,
        describe: ItemDescriber | None = None,
    ) -> BatchResult:
        """Create one entity per item.

        Args:
            context: The running task
            items: Item payloads, in input order
            handler: Creates the entity for one item
            kind: Item kind used in log and error lines
            scope: Tenant scope passed to the handler
            describe: Names an item in log and error lines

        Returns:
            Aggregate result; includes items processed by earlier runs

        Raises:
            TaskInterruptedError: If the task was paused or cancelled
        """

        async def process_one(item: dict[str, Any], index: int) -> ProcessedItemRecord:
            return await handler(item, scope)

        return await self._run(
            context, items, process_one, kind, describe=describe or describe_item
        )

    async def retry_items(
        self,
        context: TaskContext,
        item_ids: Sequence[str],
        retry_handler: RetryItemHandler,
        kind: str,
        scope: str | None = None,
    ) -> BatchResult:
        """Retry previously failed items by id, with the same isolation rules."""

        async def process_one(item_id: str, index: int) -> ProcessedItemRecord:
            return await retry_handler(item_id, scope)

        return await self._run(
            context,
            item_ids,
            process_one,
            kind,
            describe=lambda item_id, index: str(item_id),
        )

    async def _run(
        self,
        context: TaskContext,
        entries: Sequence[T],
        process_one: Callable[[T, int], Awaitable[ProcessedItemRecord]],
        kind: str,
        describe: Callable[[T, int], str],
    ) -> BatchResult:
        task_id = context.task_id
        total = len(entries)
        total_batches = math.ceil(total / self._batch_size) if total else 0
        offset = min(context.resume_offset, total)

        result = resume_result(context)
        if offset:
            self._execution_logger.info(
                task_id, f"Resuming at item {offset + 1}/{total}", offset=offset
            )

        for index in range(offset, total):
            if index == offset or index % self._batch_size == 0:
                batch_number = index // self._batch_size + 1
                self._execution_logger.info(
                    task_id, f"Processing batch {batch_number}/{total_batches}"
                )

            self._check_interrupted(task_id, result.processed)

            entry = entries[index]
            name = describe(entry, index)
            error_line: str | None = None
            try:
                record = await process_one(entry, index)
                result.success += 1
                result.processed_items.append(record)
                self._execution_logger.info(
                    task_id,
                    f"Successfully created {kind}: {name}",
                    **record.model_dump(exclude_none=True),
                )
            except Exception as e:
                result.failed += 1
                error_line = f"Failed to create {kind} {name}: {e}"
                result.errors.append(error_line)
                self._execution_logger.error(task_id, error_line, index=index)
                logger.warning(f"[task {task_id}] {error_line}")

            self._state_manager.record_progress(
                task_id,
                processed=result.processed,
                failed=result.failed,
                total=context.total_items or total,
                error=error_line,
                results=result.to_results(),
            )

            await asyncio.sleep(self._item_delay)
            is_batch_end = (index + 1) % self._batch_size == 0
            if is_batch_end and index + 1 < total:
                await asyncio.sleep(self._batch_delay)

        return result

    def _check_interrupted(self, task_id: str, processed: int) -> None:
        status = self._state_manager.get_status(task_id)
        if status is None:
            raise TaskNotFoundError(task_id)
        if status in INTERRUPTING_STATUSES:
            raise TaskInterruptedError(task_id, status.value, processed)

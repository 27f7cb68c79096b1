"""Registry mapping task types to batch strategies and item handlers."""

from collections.abc import Awaitable, Callable
from typing import Any

from core.exceptions import UnknownItemKindError, UnknownTaskTypeError
from core.log import get_logger
from core.models.batch import BatchResult, ProcessedItemRecord
from core.models.domain.task import TaskContext

logger = get_logger(__name__)

# (item, scope) -> record of the created entity; raises on failure
ItemHandler = Callable[[dict[str, Any], str | None], Awaitable[ProcessedItemRecord]]
# (failed item id, scope) -> record of the recovered entity; raises on failure
RetryItemHandler = Callable[[str, str | None], Awaitable[ProcessedItemRecord]]
# (item, index) -> name used in log and error lines
ItemDescriber = Callable[[dict[str, Any], int], str]
# (context, input_data) -> aggregate result; raises only on orchestration errors
BatchStrategy = Callable[[TaskContext, dict[str, Any]], Awaitable[BatchResult]]


class ItemProcessorRegistry:
    """Pluggable lookup used by the scheduler and the batch strategies.

    New task types register a strategy here instead of adding a branch to the
    scheduler.
    """

    def __init__(self) -> None:
        self._strategies: dict[str, BatchStrategy] = {}
        self._item_handlers: dict[tuple[str, str], ItemHandler] = {}
        self._retry_handlers: dict[tuple[str, str], RetryItemHandler] = {}
        self._describers: dict[tuple[str, str], ItemDescriber] = {}

    def register_strategy(self, task_type: str, strategy: BatchStrategy) -> None:
        """Register the batch strategy that runs tasks of ``task_type``."""
        if task_type in self._strategies:
            logger.warning(f"Replacing strategy for task type: {task_type}")
        self._strategies[task_type] = strategy
        logger.info(f"Registered strategy: {task_type}")

    def get_strategy(self, task_type: str) -> BatchStrategy:
        """Get the strategy for a task type.

        Raises:
            UnknownTaskTypeError: If nothing is registered for the type
        """
        try:
            return self._strategies[task_type]
        except KeyError:
            raise UnknownTaskTypeError(task_type) from None

    def register_item_handler(
        self,
        task_type: str,
        kind: str,
        handler: ItemHandler,
        retry_handler: RetryItemHandler | None = None,
        describe: ItemDescriber | None = None,
    ) -> None:
        """Register the per-item handler (and optional retry handler) for a kind.

        ``describe`` names an item of this kind in log and error lines; without
        one the batch processor falls back to a generic name.
        """
        key = (task_type, kind)
        self._item_handlers[key] = handler
        if retry_handler is not None:
            self._retry_handlers[key] = retry_handler
        if describe is not None:
            self._describers[key] = describe
        logger.info(f"Registered item handler: {task_type}/{kind}")

    def get_item_handler(self, task_type: str, kind: str) -> ItemHandler:
        try:
            return self._item_handlers[(task_type, kind)]
        except KeyError:
            raise UnknownItemKindError(task_type, kind) from None

    def get_retry_handler(self, task_type: str, kind: str) -> RetryItemHandler:
        try:
            return self._retry_handlers[(task_type, kind)]
        except KeyError:
            raise UnknownItemKindError(task_type, kind) from None

    def get_describer(self, task_type: str, kind: str) -> ItemDescriber | None:
        return self._describers.get((task_type, kind))

    def has_strategy(self, task_type: str) -> bool:
        return task_type in self._strategies

    @property
    def task_types(self) -> list[str]:
        """Registered task types, sorted."""
        return sorted(self._strategies)

    def kinds_for(self, task_type: str) -> list[str]:
        """Item kinds registered under a task type, sorted."""
        return sorted(kind for (tt, kind) in self._item_handlers if tt == task_type)

"""Batch strategies for the built-in bulk task types."""

from typing import Any

from core.batch.item_processor import BatchItemProcessor
from core.batch.registry import ItemProcessorRegistry
from core.log import get_logger
from core.models.batch import BatchResult
from core.models.domain.task import TaskContext
from core.types import TaskType

logger = get_logger(__name__)


def _read_payload(input_data: dict[str, Any]) -> tuple[str, list[Any]]:
    kind = input_data.get("kind")
    if not kind or not isinstance(kind, str):
        raise ValueError("input_data.kind is required")

    items = input_data.get("items")
    if not isinstance(items, list):
        raise ValueError("input_data.items must be a list")

    return kind, items


class BulkItemStrategy:
    """Creates one entity per item through the handler registered for its kind."""

    def __init__(
        self, registry: ItemProcessorRegistry, item_processor: BatchItemProcessor
    ) -> None:
        self._registry = registry
        self._item_processor = item_processor

    async def __call__(
        self, context: TaskContext, input_data: dict[str, Any]
    ) -> BatchResult:
        kind, items = _read_payload(input_data)
        handler = self._registry.get_item_handler(context.task_type, kind)
        describe = self._registry.get_describer(context.task_type, kind)
        scope = input_data.get("branch_id") or context.branch_id

        logger.info(
            f"Running {context.task_type} for {len(items)} {kind} items "
            f"(task {context.task_id})"
        )
        return await self._item_processor.process_items(
            context, items, handler, kind, scope=scope, describe=describe
        )


class BulkRetryStrategy:
    """Retries previously failed items, identified by id, for one kind."""

    def __init__(
        self, registry: ItemProcessorRegistry, item_processor: BatchItemProcessor
    ) -> None:
        self._registry = registry
        self._item_processor = item_processor

    async def __call__(
        self, context: TaskContext, input_data: dict[str, Any]
    ) -> BatchResult:
        kind, item_ids = _read_payload(input_data)
        retry_handler = self._registry.get_retry_handler(context.task_type, kind)
        scope = input_data.get("branch_id") or context.branch_id

        logger.info(
            f"Retrying {len(item_ids)} {kind} items (task {context.task_id})"
        )
        return await self._item_processor.retry_items(
            context, [str(item_id) for item_id in item_ids], retry_handler, kind,
            scope=scope,
        )


def register_default_strategies(
    registry: ItemProcessorRegistry, item_processor: BatchItemProcessor
) -> None:
    """Register the bulk creation and bulk retry strategies."""
    registry.register_strategy(
        TaskType.BULK_ACCOUNT_CREATION.value,
        BulkItemStrategy(registry, item_processor),
    )
    registry.register_strategy(
        TaskType.BULK_ACCOUNT_RETRY.value,
        BulkRetryStrategy(registry, item_processor),
    )

"""Tests for the item processor registry."""

import pytest

from core.batch.registry import ItemProcessorRegistry
from core.exceptions import UnknownItemKindError, UnknownTaskTypeError
from core.models.batch import BatchResult, ProcessedItemRecord
from core.models.domain.task import TaskContext


async def noop_strategy(context: TaskContext, input_data: dict) -> BatchResult:
    return BatchResult()


async def noop_handler(item: dict, scope: str | None) -> ProcessedItemRecord:
    return ProcessedItemRecord()


async def noop_retry_handler(item_id: str, scope: str | None) -> ProcessedItemRecord:
    return ProcessedItemRecord(id=item_id)


def test_register_and_get_strategy() -> None:
    registry = ItemProcessorRegistry()
    registry.register_strategy("IMPORT", noop_strategy)

    assert registry.get_strategy("IMPORT") is noop_strategy
    assert registry.has_strategy("IMPORT")
    assert registry.task_types == ["IMPORT"]


def test_unknown_task_type() -> None:
    registry = ItemProcessorRegistry()

    with pytest.raises(UnknownTaskTypeError, match="Unknown task type: MISSING"):
        registry.get_strategy("MISSING")


def test_replacing_strategy_keeps_latest() -> None:
    async def other_strategy(context: TaskContext, input_data: dict) -> BatchResult:
        return BatchResult(success=1)

    registry = ItemProcessorRegistry()
    registry.register_strategy("IMPORT", noop_strategy)
    registry.register_strategy("IMPORT", other_strategy)

    assert registry.get_strategy("IMPORT") is other_strategy


def test_item_handlers_by_kind() -> None:
    registry = ItemProcessorRegistry()
    registry.register_item_handler(
        "IMPORT", "student", noop_handler, retry_handler=noop_retry_handler
    )
    registry.register_item_handler("IMPORT", "teacher", noop_handler)

    assert registry.get_item_handler("IMPORT", "student") is noop_handler
    assert registry.get_retry_handler("IMPORT", "student") is noop_retry_handler
    assert registry.kinds_for("IMPORT") == ["student", "teacher"]

    with pytest.raises(UnknownItemKindError):
        registry.get_retry_handler("IMPORT", "teacher")
    with pytest.raises(UnknownItemKindError):
        registry.get_item_handler("OTHER", "student")


def test_describer_by_kind() -> None:
    def describe(item: dict, index: int) -> str:
        return item["code"]

    registry = ItemProcessorRegistry()
    registry.register_item_handler("IMPORT", "course", noop_handler, describe=describe)
    registry.register_item_handler("IMPORT", "room", noop_handler)

    assert registry.get_describer("IMPORT", "course") is describe
    assert registry.get_describer("IMPORT", "room") is None

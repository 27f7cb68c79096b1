"""Item handlers for bulk account creation."""

from typing import Any

from core.batch.item_processor import describe_item
from core.batch.registry import ItemHandler, ItemProcessorRegistry, RetryItemHandler
from core.log import get_logger
from core.models.batch import ProcessedItemRecord
from core.provisioning.client import DomainRecordClient, IdentityProvisioningClient
from core.types import AccountKind, TaskType

logger = get_logger(__name__)

EMAIL_FIELDS = ("email", "officialEmail", "personalEmail")


def identifying_field(item: dict[str, Any]) -> str | None:
    """First email present on a person payload."""
    for key in EMAIL_FIELDS:
        if item.get(key):
            return str(item[key])
    return None


def describe_person(item: dict[str, Any], index: int) -> str:
    name = " ".join(
        str(part) for part in (item.get("firstName"), item.get("lastName")) if part
    )
    return name or identifying_field(item) or describe_item(item, index)


def make_account_handler(
    identity: IdentityProvisioningClient,
    records: DomainRecordClient,
    kind: str,
) -> ItemHandler:
    """Handler that provisions an account, then the record referencing it.

    A failure in either call fails the item; an account created before a
    record failure is left for the retry task.
    """

    async def handle(item: dict[str, Any], scope: str | None) -> ProcessedItemRecord:
        email = identifying_field(item)
        external_id = await identity.create_account(
            {
                "kind": kind,
                "firstName": item.get("firstName"),
                "lastName": item.get("lastName"),
                "email": email,
            },
            scope=scope,
        )
        record_id = await records.create_record(
            kind, {**item, "externalId": external_id}, scope=scope
        )
        return ProcessedItemRecord(
            id=record_id, external_id=external_id, identifying_field=email
        )

    return handle


def make_account_retry_handler(
    identity: IdentityProvisioningClient,
) -> RetryItemHandler:
    """Handler that re-provisions the account of a previously failed record."""

    async def handle(item_id: str, scope: str | None) -> ProcessedItemRecord:
        external_id = await identity.retry_account(item_id, scope=scope)
        return ProcessedItemRecord(id=item_id, external_id=external_id)

    return handle


def register_account_handlers(
    registry: ItemProcessorRegistry,
    identity: IdentityProvisioningClient,
    records: DomainRecordClient,
) -> None:
    """Register creation and retry handlers for every account kind."""
    for kind in AccountKind:
        handler = make_account_handler(identity, records, kind.value)
        retry_handler = make_account_retry_handler(identity)
        registry.register_item_handler(
            TaskType.BULK_ACCOUNT_CREATION.value,
            kind.value,
            handler,
            describe=describe_person,
        )
        registry.register_item_handler(
            TaskType.BULK_ACCOUNT_RETRY.value,
            kind.value,
            handler,
            retry_handler=retry_handler,
            describe=describe_person,
        )
    logger.info(f"Registered account handlers for {len(AccountKind)} kinds")

"""Batch models for background item processing."""

from typing import Any

from pydantic import BaseModel, Field


class ProcessedItemRecord(BaseModel):
    """Compact record of one successfully processed item."""

    id: str | None = Field(default=None, description="Domain record identifier")
    external_id: str | None = Field(
        default=None, description="Identifier issued by the identity provider"
    )
    identifying_field: str | None = Field(
        default=None, description="Human identifier such as an email address"
    )


class BatchResult(BaseModel):
    """Outcome of running a batch strategy over a task's items."""

    success: int = Field(default=0, ge=0, description="Items processed successfully")
    failed: int = Field(default=0, ge=0, description="Items that failed")
    errors: list[str] = Field(default_factory=list, description="Item error lines")
    processed_items: list[ProcessedItemRecord] = Field(
        default_factory=list, description="Records of successful items"
    )

    @property
    def processed(self) -> int:
        """Number of items processed in this run (success + failed)."""
        return self.success + self.failed

    def to_results(self) -> dict[str, Any]:
        """Serialize for the task's results column."""
        return self.model_dump(mode="json")

from __future__ import annotations

from pydantic import BaseModel, Field

from src.domain.entities.batch_item import BatchItem


class BatchItemInfo(BaseModel):
    """One image in the batch and where it is in its lifecycle."""
    id: str = Field(..., description="Stable identifier of the batch item")
    name: str = Field(..., description="Original file name", examples=["beach.jpg"])
    status: str = Field(..., description="pending, processing, done or error", examples=["pending"])
    error_message: str | None = Field(None, description="Readable failure message for items in error")
    result_name: str | None = Field(None, description="File name of the edited image, when done")

    @classmethod
    def from_entity(cls, item: BatchItem) -> "BatchItemInfo":
        return cls(
            id=item.id,
            name=item.source.name,
            status=item.status.value,
            error_message=item.error_message,
            result_name=item.result.name if item.result else None,
        )


class BatchStatusResponse(BaseModel):
    """Progress of the batch: settled (done + error) over total."""
    items: list[BatchItemInfo] = Field(default_factory=list)
    processed: int = Field(..., description="Items that are done or in error", ge=0)
    total: int = Field(..., description="Number of items in the batch", ge=0)
    running: bool = Field(False, description="Whether a run is in progress")
    cancel_requested: bool = False
    prompt: str | None = Field(None, description="Prompt of the last run")
    kind: str | None = Field(None, description="'filter' or 'adjust'")


class BatchStartRequest(BaseModel):
    """Run a prompt over every pending or failed image."""
    prompt: str = Field(..., description="Filter or adjustment prompt", examples=["vintage sepia tone"])
    kind: str = Field("adjust", description="Which operation to apply", pattern="^(filter|adjust)$")


class BatchRetryRequest(BaseModel):
    prompt: str | None = Field(None, description="Override the prompt of the last run")
    kind: str | None = Field(None, description="Override the operation of the last run", pattern="^(filter|adjust)$")

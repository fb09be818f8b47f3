from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.domain.entities.snapshot import ImageSnapshot


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


@dataclass
class BatchItem:
    id: str
    source: ImageSnapshot
    status: BatchStatus = BatchStatus.PENDING
    result: ImageSnapshot | None = None
    error_message: str | None = None

    @property
    def is_settled(self) -> bool:
        return self.status in (BatchStatus.DONE, BatchStatus.ERROR)

    @property
    def is_runnable(self) -> bool:
        # pending items and failed ones are picked up by the next run
        return self.status in (BatchStatus.PENDING, BatchStatus.ERROR)

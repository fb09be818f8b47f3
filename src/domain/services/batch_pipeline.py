from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable

from src.domain.entities.batch_item import BatchItem, BatchStatus
from src.domain.entities.snapshot import ImageSnapshot

logger = logging.getLogger(__name__)

EditOperation = Callable[[ImageSnapshot, str], Awaitable[ImageSnapshot]]

UNKNOWN_ERROR = "An unknown error occurred."


class BatchPipeline:
    """Drives independent batch items through one edit operation, one at a time.

    Items run strictly in list order and only one is ever in flight, so
    completion order equals start order. Cancellation is cooperative: the flag
    is checked before each item starts and never interrupts the item that is
    already processing. One pipeline is owned by one editing session.
    """

    def __init__(self) -> None:
        self.items: list[BatchItem] = []
        self._cancel_requested = False
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def load(self, sources: Iterable[ImageSnapshot]) -> list[BatchItem]:
        self.items = [BatchItem(id=uuid.uuid4().hex, source=src) for src in sources]
        self._cancel_requested = False
        return self.items

    def clear(self) -> None:
        self.items = []
        self._cancel_requested = False

    def get(self, item_id: str) -> BatchItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    def progress(self) -> tuple[int, int]:
        settled = sum(1 for item in self.items if item.is_settled)
        return settled, len(self.items)

    def cancel(self) -> None:
        if self._running:
            self._cancel_requested = True

    async def start(self, operation: EditOperation, prompt: str) -> list[BatchItem]:
        """Process every pending or failed item; returns the items that ran.

        A call made while a run or a retry is in progress does nothing and
        returns an empty list.
        """
        if self._running:
            logger.info("Batch start ignored, a run is already in progress")
            return []
        selected = [item for item in self.items if item.is_runnable]
        if not selected:
            return []

        # set before the first await so overlapping calls see it
        self._running = True
        self._cancel_requested = False
        processed: list[BatchItem] = []
        try:
            for item in selected:
                if self._cancel_requested:
                    logger.info(
                        "Batch cancelled, %d item(s) left pending", len(selected) - len(processed)
                    )
                    break
                if not item.is_runnable:
                    continue
                await self._run_item(item, operation, prompt)
                processed.append(item)
        finally:
            self._running = False
            self._cancel_requested = False
        return processed

    def can_retry(self, item_id: str) -> bool:
        """Only a failed item can be retried, and only while nothing else is in flight."""
        item = self.get(item_id)
        return item is not None and item.status is BatchStatus.ERROR and not self._running

    async def retry(self, item_id: str, operation: EditOperation, prompt: str) -> bool:
        """Re-run one failed item. Returns False (no-op) when ``can_retry`` is False."""
        if not self.can_retry(item_id):
            return False
        item = self.get(item_id)
        self._running = True
        try:
            await self._run_item(item, operation, prompt)
        finally:
            self._running = False
            self._cancel_requested = False
        return True

    async def _run_item(self, item: BatchItem, operation: EditOperation, prompt: str) -> None:
        item.status = BatchStatus.PROCESSING
        try:
            result = await operation(item.source, prompt)
        except Exception as exc:
            logger.warning("Batch processing failed for %s: %s", item.source.name, exc)
            item.status = BatchStatus.ERROR
            item.error_message = str(exc) or UNKNOWN_ERROR
            return
        item.result = result
        item.error_message = None
        item.status = BatchStatus.DONE

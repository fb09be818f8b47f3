from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class DebouncedSaver:
    """Runs ``save`` once, ``delay`` seconds after the last ``schedule`` call."""

    def __init__(self, save: Callable[[], object], delay: float) -> None:
        self._save = save
        self.delay = delay
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, session save not scheduled")
            return
        self._task = loop.create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def flush(self) -> None:
        self.cancel()
        self._save()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        self._task = None
        try:
            self._save()
        except Exception:
            logger.exception("Debounced session save failed")

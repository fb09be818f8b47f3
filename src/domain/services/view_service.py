from __future__ import annotations

import logging

from PIL import Image

from src.domain.entities.snapshot import ImageSnapshot
from src.domain.services.processing_service import ProcessingService

logger = logging.getLogger(__name__)


class SnapshotView:
    """Decoded display handle for a single snapshot, released explicitly."""

    def __init__(self, snapshot: ImageSnapshot) -> None:
        self.snapshot = snapshot
        self._image: Image.Image | None = ProcessingService.to_pil(snapshot)
        self._previews: dict[int, bytes] = {}

    @property
    def released(self) -> bool:
        return self._image is None

    def preview_png(self, max_side: int) -> bytes:
        if self._image is None:
            raise RuntimeError("view handle already released")
        cached = self._previews.get(max_side)
        if cached is not None:
            return cached
        preview = self._image.copy()
        preview.thumbnail((max_side, max_side), resample=Image.Resampling.LANCZOS)
        data = ProcessingService.encode_png(preview)
        self._previews[max_side] = data
        return data

    def release(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None
        self._previews.clear()


class CurrentImageView:
    """Keeps exactly one live handle, for whichever snapshot is current."""

    def __init__(self) -> None:
        self._view: SnapshotView | None = None

    @property
    def handle(self) -> SnapshotView | None:
        return self._view

    def acquire(self, snapshot: ImageSnapshot | None) -> SnapshotView | None:
        if self._view is not None and snapshot is not None and self._view.snapshot.id == snapshot.id:
            return self._view
        self.release()
        if snapshot is not None:
            self._view = SnapshotView(snapshot)
            logger.debug("Acquired view for snapshot %s", snapshot.id)
        return self._view

    def release(self) -> None:
        if self._view is not None:
            logger.debug("Released view for snapshot %s", self._view.snapshot.id)
            self._view.release()
            self._view = None

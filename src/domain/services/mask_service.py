from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

from src.domain.entities.snapshot import MaskArtifact
from src.domain.entities.viewport import Point
from src.domain.services.processing_service import ProcessingService

STROKE = 255


class MaskRasterizer:
    """Stroke buffer sized to the displayed image.

    The buffer is a single 8-bit channel where 0 is transparent and 255 is an
    opaque white stroke; no other values are ever written. Widths are in image
    space, so callers divide the on-screen brush size by the zoom.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("mask dimensions must be positive")
        self.width = int(width)
        self.height = int(height)
        self._buffer = Image.new("L", (self.width, self.height), 0)
        self._draw = ImageDraw.Draw(self._buffer)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def dot(self, center: Point, width: float) -> None:
        r = max(width, 1.0) / 2.0
        self._draw.ellipse(
            [center.x - r, center.y - r, center.x + r, center.y + r], fill=STROKE
        )

    # Round-capped segment, matching a canvas stroke with lineCap = "round".
    def line(self, start: Point, end: Point, width: float) -> None:
        w = max(1, round(width))
        if start != end:
            self._draw.line([(start.x, start.y), (end.x, end.y)], fill=STROKE, width=w)
        self.dot(start, width)
        self.dot(end, width)

    def clear(self) -> None:
        self._draw.rectangle([0, 0, self.width, self.height], fill=0)

    def as_array(self) -> np.ndarray:
        return np.asarray(self._buffer, dtype=np.uint8).copy()

    def is_blank(self) -> bool:
        return not np.any(np.asarray(self._buffer))

    def export(self) -> MaskArtifact | None:
        """Flatten strokes onto an opaque black surface.

        Returns None for an untouched buffer, which callers treat as "no mask".
        """
        if self.is_blank():
            return None
        flattened = Image.new("RGB", self.size, (0, 0, 0))
        flattened.paste((255, 255, 255), (0, 0, self.width, self.height), mask=self._buffer)
        return MaskArtifact(
            data=ProcessingService.encode_png(flattened), width=self.width, height=self.height
        )

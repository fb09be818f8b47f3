from __future__ import annotations

from typing import Protocol

from src.domain.entities.snapshot import ImageSnapshot, MaskArtifact
from src.domain.entities.viewport import Rect


class ImageEditor(Protocol):
    """External generative edit operation.

    Every call returns the encoded bytes of a single full image or raises
    ``EditorError`` carrying a human readable message.
    """

    async def edit_region(self, image: ImageSnapshot, prompt: str, region: Rect) -> bytes:
        ...

    async def apply_filter(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        ...

    async def apply_adjustment(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        ...

    async def expand_canvas(self, padded_png: bytes, width: int, height: int) -> bytes:
        ...

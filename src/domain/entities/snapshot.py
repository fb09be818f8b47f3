from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class ImageSnapshot:
    id: str
    name: str
    data: bytes = field(repr=False)  # encoded image bytes, never mutated
    mime_type: str
    width: int
    height: int
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class MaskArtifact:
    """Flattened black/white PNG sent alongside a filter or adjustment."""

    data: bytes = field(repr=False)
    width: int
    height: int
    mime_type: str = "image/png"

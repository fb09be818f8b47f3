from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class EditorTab(str, Enum):
    RETOUCH = "retouch"
    ADJUST = "adjust"
    FILTERS = "filters"
    CROP = "crop"
    EXPAND = "expand"

    @property
    def supports_mask(self) -> bool:
        return self in (EditorTab.ADJUST, EditorTab.FILTERS)


class PromptCategory(str, Enum):
    EDIT = "edit"
    ADJUST = "adjust"
    FILTER = "filter"


@dataclass(frozen=True)
class PersistedImage:
    name: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class PersistedSession:
    """Snapshot list and cursor as written to the session store."""

    images: list[PersistedImage]
    cursor_index: int
    saved_at: datetime

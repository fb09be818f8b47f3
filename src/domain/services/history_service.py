from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

from src.domain.entities.snapshot import ImageSnapshot


class HistoryEvent(str, Enum):
    COMMIT = "commit"
    UNDO = "undo"
    REDO = "redo"
    RESET = "reset"
    CLEAR = "clear"
    LOAD = "load"


HistoryListener = Callable[[HistoryEvent], None]


class EditHistory:
    """Linear undo/redo over immutable image snapshots.

    Index 0 is the original upload. Committing after an undo drops every
    snapshot past the cursor; there is no branching. Out-of-range undo, redo
    and reset are no-ops rather than errors, and listeners are only notified
    when the state actually changed.
    """

    def __init__(self) -> None:
        self._snapshots: list[ImageSnapshot] = []
        self._cursor = -1
        self._listeners: list[HistoryListener] = []

    def subscribe(self, listener: HistoryListener) -> None:
        self._listeners.append(listener)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> tuple[ImageSnapshot, ...]:
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def current(self) -> ImageSnapshot | None:
        if self._cursor < 0:
            return None
        return self._snapshots[self._cursor]

    def original(self) -> ImageSnapshot | None:
        return self._snapshots[0] if self._snapshots else None

    def commit(self, snapshot: ImageSnapshot) -> None:
        # list and cursor are swapped together so no partial state is observable
        truncated = self._snapshots[: self._cursor + 1]
        truncated.append(snapshot)
        self._snapshots, self._cursor = truncated, len(truncated) - 1
        self._notify(HistoryEvent.COMMIT)

    def undo(self) -> None:
        if not self.can_undo:
            return
        self._cursor -= 1
        self._notify(HistoryEvent.UNDO)

    def redo(self) -> None:
        if not self.can_redo:
            return
        self._cursor += 1
        self._notify(HistoryEvent.REDO)

    def reset_to_original(self) -> None:
        if not self._snapshots or self._cursor == 0:
            return
        self._cursor = 0
        self._notify(HistoryEvent.RESET)

    def clear(self) -> None:
        if not self._snapshots:
            return
        self._snapshots, self._cursor = [], -1
        self._notify(HistoryEvent.CLEAR)

    def load(self, snapshots: Sequence[ImageSnapshot], cursor: int) -> None:
        """Replace the whole list, e.g. when restoring a saved session."""
        items = list(snapshots)
        if not items:
            self._snapshots, self._cursor = [], -1
        else:
            self._snapshots, self._cursor = items, min(max(cursor, 0), len(items) - 1)
        self._notify(HistoryEvent.LOAD)

    def _notify(self, event: HistoryEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.application.session.debounce import DebouncedSaver
from src.domain.entities.editor_state import EditorTab, PromptCategory
from src.domain.entities.viewport import Rect
from src.domain.services.batch_pipeline import BatchPipeline
from src.domain.services.canvas_service import CanvasController
from src.domain.services.history_service import EditHistory, HistoryEvent
from src.domain.services.prompt_history import PromptHistory
from src.domain.services.view_service import CurrentImageView

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Rectangle drawn over the displayed image, plus the displayed size it refers to."""

    rect: Rect
    displayed_width: int
    displayed_height: int

    @property
    def displayed_size(self) -> tuple[int, int]:
        return self.displayed_width, self.displayed_height


@dataclass
class EditorSession:
    """Everything one user is editing: history, canvas, batch and prompt lists.

    The session listens to its history so that every change re-acquires the
    display handle, drops selection state tied to the old image and schedules a
    debounced save.
    """

    user_id: str
    history: EditHistory = field(default_factory=EditHistory)
    canvas: CanvasController = field(default_factory=CanvasController)
    batch: BatchPipeline = field(default_factory=BatchPipeline)
    view: CurrentImageView = field(default_factory=CurrentImageView)
    prompts: dict[PromptCategory, PromptHistory] = field(
        default_factory=lambda: {category: PromptHistory() for category in PromptCategory}
    )
    active_tab: EditorTab = EditorTab.RETOUCH
    selection: Selection | None = None
    error: str | None = None
    is_loading: bool = False
    batch_prompt: str | None = None
    batch_kind: str | None = None
    saver: DebouncedSaver | None = None

    def __post_init__(self) -> None:
        self.history.subscribe(self._on_history_change)

    @property
    def is_batch_mode(self) -> bool:
        return bool(self.batch.items)

    def _on_history_change(self, event: HistoryEvent) -> None:
        self.selection = None
        self.canvas.clear_mask()
        self.view.acquire(self.history.current())
        if self.saver is not None and event is not HistoryEvent.CLEAR:
            self.saver.schedule()
        logger.debug("History %s for %s, cursor=%d", event.value, self.user_id, self.history.cursor)

    def select_tab(self, tab: EditorTab) -> None:
        if self.active_tab.supports_mask and not tab.supports_mask:
            self.canvas.disable_masking()
        if tab is not EditorTab.CROP and tab is not EditorTab.RETOUCH:
            self.selection = None
        self.active_tab = tab

    def start_over(self) -> None:
        if self.saver is not None:
            self.saver.cancel()
        self.history.clear()
        self.batch.clear()
        self.canvas.disable_masking()
        self.canvas.reset_view()
        self.view.release()
        self.selection = None
        self.error = None
        self.batch_prompt = None
        self.batch_kind = None
        self.active_tab = EditorTab.RETOUCH


class SessionRegistry:
    """In-process editing sessions keyed by user id."""

    def __init__(self) -> None:
        self._sessions: dict[str, EditorSession] = {}

    def get(self, user_id: str) -> EditorSession | None:
        return self._sessions.get(user_id)

    def create(self, user_id: str) -> EditorSession:
        session = EditorSession(user_id=user_id)
        self._sessions[user_id] = session
        return session

    def drop(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            session.start_over()

    def __len__(self) -> int:
        return len(self._sessions)


_REGISTRY = SessionRegistry()


def get_registry() -> SessionRegistry:
    return _REGISTRY

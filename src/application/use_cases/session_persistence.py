from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime

from src.application.session.debounce import DebouncedSaver
from src.application.session.editor_session import EditorSession
from src.domain.entities.editor_state import EditorTab, PersistedImage, PersistedSession
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.database.repositories.session_repository import SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class SessionPersistenceUseCase:
    """Save, offer, restore and discard the user's single saved session."""

    sessions: SessionRepository
    processing: ProcessingService

    @property
    def debounce_seconds(self) -> float:
        return int(os.getenv("SESSION_SAVE_DEBOUNCE_MS", "500")) / 1000.0

    def attach(self, session: EditorSession) -> None:
        """Save the session shortly after each history change."""
        session.saver = DebouncedSaver(lambda: self.save(session), self.debounce_seconds)

    def save(self, session: EditorSession) -> PersistedSession | None:
        snapshots = session.history.snapshots
        if not snapshots:
            return None
        record = PersistedSession(
            images=[PersistedImage(name=s.name, data=s.data) for s in snapshots],
            cursor_index=session.history.cursor,
            saved_at=datetime.now(UTC),
        )
        self.sessions.save(session.user_id, record)
        logger.info("Saved session for %s (%d images)", session.user_id, len(record.images))
        return record

    def peek(self, user_id: str) -> PersistedSession | None:
        return self.sessions.get(user_id)

    def restore(self, session: EditorSession) -> bool:
        """
        Load the saved record into the session's history.

        Returns False when nothing is saved. Raises ImageDecodeError if a
        stored image is corrupt; the session is left unchanged in that case.
        """
        record = self.sessions.get(session.user_id)
        if record is None or not record.images:
            return False
        snapshots = [self.processing.decode(img.data, img.name) for img in record.images]
        session.batch.clear()
        session.error = None
        session.active_tab = EditorTab.RETOUCH
        session.history.load(snapshots, record.cursor_index)
        logger.info("Restored session for %s saved at %s", session.user_id, record.saved_at.isoformat())
        return True

    def discard(self, session: EditorSession) -> None:
        session.start_over()
        self.sessions.delete(session.user_id)

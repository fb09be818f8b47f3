from __future__ import annotations

import logging
from dataclasses import dataclass

from src.application.session.editor_session import EditorSession
from src.domain.entities.editor_state import EditorTab
from src.domain.errors import EditValidationError
from src.domain.services.processing_service import ProcessingService

logger = logging.getLogger(__name__)


@dataclass
class UploadImagesUseCase:
    processing: ProcessingService

    def execute(self, session: EditorSession, files: list[tuple[str, bytes]]) -> str:
        """
        Start a new single-image or batch workload.

        Args:
            session: The user's editing session
            files: (filename, bytes) pairs in the order they were selected

        Returns:
            "single" when one file starts a fresh history, "batch" otherwise

        Raises:
            EditValidationError: If no files were given
            ImageDecodeError: If any file is not a decodable image
        """
        if not files:
            raise EditValidationError("Please choose at least one image.")

        # decode everything first so a bad file leaves the session untouched
        snapshots = [self.processing.decode(data, name) for name, data in files]

        session.error = None
        session.canvas.disable_masking()
        session.canvas.reset_view()

        if len(snapshots) == 1:
            session.batch.clear()
            session.history.load(snapshots, 0)
            session.active_tab = EditorTab.RETOUCH
            logger.info("Loaded %s for %s", snapshots[0].name, session.user_id)
            return "single"

        session.history.clear()
        session.batch.load(snapshots)
        # batch runs only support filters and adjustments
        session.active_tab = EditorTab.ADJUST
        logger.info("Loaded %d images into batch for %s", len(snapshots), session.user_id)
        return "batch"

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from src.application.session.editor_session import EditorSession
from src.domain.entities.snapshot import ImageSnapshot
from src.domain.errors import EditValidationError
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.processing_service import EXPANSION_ASPECTS, ProcessingService

logger = logging.getLogger(__name__)


@dataclass
class ExpandCanvasUseCase:
    """Generative uncrop: pad the current image to a wider/taller aspect and fill it in."""

    editor: ImageEditor
    processing: ProcessingService

    @property
    def max_side(self) -> int:
        return int(os.getenv("EXPANSION_MAX_SIDE", "2048"))

    async def execute(self, session: EditorSession, aspect: str) -> ImageSnapshot:
        current = session.history.current()
        if current is None:
            session.error = "No image loaded to expand."
            raise EditValidationError(session.error)
        ratio = EXPANSION_ASPECTS.get(aspect)
        if ratio is None:
            session.error = f"Unsupported aspect ratio: {aspect}"
            raise EditValidationError(session.error)

        try:
            target_w, target_h = self.processing.expansion_target(current.width, current.height, ratio)
            padded, canvas_w, canvas_h = self.processing.pad_for_expansion(
                current, target_w, target_h, self.max_side
            )
        except EditValidationError as exc:
            session.error = str(exc)
            raise

        session.is_loading = True
        session.error = None
        name = f"expanded-{int(time.time() * 1000)}.png"
        try:
            data = await self.editor.expand_canvas(padded, canvas_w, canvas_h)
            snapshot, resized = self.processing.conform(data, canvas_w, canvas_h, name)
        except Exception as exc:
            session.error = f"Failed to expand the image. {exc}"
            logger.error("Expansion failed for %s: %s", session.user_id, exc)
            raise
        finally:
            session.is_loading = False

        if resized:
            logger.warning("Model returned a different size for %s, resized to %dx%d", name, canvas_w, canvas_h)
        session.history.commit(snapshot)
        return snapshot

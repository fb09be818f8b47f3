from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.application.session.editor_session import EditorSession
from src.domain.entities.editor_state import PromptCategory
from src.domain.entities.snapshot import ImageSnapshot, MaskArtifact
from src.domain.errors import EditValidationError
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.geometry_service import GeometryService
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.database.repositories.prompt_history_repository import (
    PromptHistoryRepository,
)

logger = logging.getLogger(__name__)


def _fail(session: EditorSession, message: str) -> EditValidationError:
    session.error = message
    return EditValidationError(message)


@dataclass
class ApplyEditUseCase:
    """
    Run one generative edit on the current image and commit the result.

    Validation problems are reported through ``session.error`` and raised as
    EditValidationError before anything is sent. Collaborator and decode
    failures are recorded the same way and re-raised; history is only touched
    on success.
    """

    editor: ImageEditor
    processing: ProcessingService
    prompt_repo: PromptHistoryRepository

    async def edit(self, session: EditorSession, prompt: str) -> ImageSnapshot:
        """Localized edit inside the current selection rectangle."""
        current = self._require_image(session, "No image loaded to edit.")
        if not prompt.strip():
            raise _fail(session, "Please enter a description for your edit.")
        selection = session.selection
        if selection is None or selection.rect.is_empty:
            raise _fail(session, "Please select an area of the image to edit.")

        region = GeometryService.display_to_native_rect(
            selection.rect, selection.displayed_size, current.size
        )
        return await self._run(
            session,
            action="generate the image",
            call=lambda: self.editor.edit_region(current, prompt, region),
            source=current,
            name=f"edited-{int(time.time() * 1000)}.png",
            category=PromptCategory.EDIT,
            prompt=prompt,
        )

    async def filter(self, session: EditorSession, prompt: str) -> ImageSnapshot:
        current = self._require_image(session, "No image loaded to apply a filter to.")
        if not prompt.strip():
            raise _fail(session, "Please enter a filter description.")
        mask = self._mask_for(session, current)
        return await self._run(
            session,
            action="apply the filter",
            call=lambda: self.editor.apply_filter(current, prompt, mask),
            source=current,
            name=f"filtered-{int(time.time() * 1000)}.png",
            category=PromptCategory.FILTER,
            prompt=prompt,
        )

    async def adjust(self, session: EditorSession, prompt: str) -> ImageSnapshot:
        current = self._require_image(session, "No image loaded to apply an adjustment to.")
        if not prompt.strip():
            raise _fail(session, "Please enter an adjustment description.")
        mask = self._mask_for(session, current)
        return await self._run(
            session,
            action="apply the adjustment",
            call=lambda: self.editor.apply_adjustment(current, prompt, mask),
            source=current,
            name=f"adjusted-{int(time.time() * 1000)}.png",
            category=PromptCategory.ADJUST,
            prompt=prompt,
        )

    # --------- helpers ---------
    @staticmethod
    def _require_image(session: EditorSession, message: str) -> ImageSnapshot:
        current = session.history.current()
        if current is None:
            raise _fail(session, message)
        return current

    def _mask_for(self, session: EditorSession, current: ImageSnapshot) -> MaskArtifact | None:
        if not session.canvas.masking_enabled:
            return None
        artifact = session.canvas.export_mask()
        if artifact is None:
            raise _fail(
                session, "Please draw over the area you want to change, or turn masking off."
            )
        # drawn at displayed size, sent at the source image's size
        return self.processing.resize_mask(artifact, current.width, current.height)

    async def _run(
        self,
        session: EditorSession,
        *,
        action: str,
        call: Callable[[], Awaitable[bytes]],
        source: ImageSnapshot,
        name: str,
        category: PromptCategory,
        prompt: str,
    ) -> ImageSnapshot:
        session.is_loading = True
        session.error = None
        try:
            data = await call()
            snapshot, resized = self.processing.conform(data, source.width, source.height, name)
        except Exception as exc:
            session.error = f"Failed to {action}. {exc}"
            logger.error("Failed to %s for %s: %s", action, session.user_id, exc)
            raise
        finally:
            session.is_loading = False

        if resized:
            logger.warning(
                "Model returned a different size for %s, resized to %dx%d",
                name,
                source.width,
                source.height,
            )
        session.history.commit(snapshot)
        session.canvas.clear_mask()
        self.remember_prompt(session, category, prompt)
        return snapshot

    def remember_prompt(self, session: EditorSession, category: PromptCategory, prompt: str) -> None:
        history = session.prompts[category]
        if history.add(prompt):
            self.prompt_repo.save(session.user_id, category, history.items)

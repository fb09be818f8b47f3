from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from src.application.session.editor_session import EditorSession
from src.domain.entities.batch_item import BatchItem
from src.domain.entities.snapshot import ImageSnapshot
from src.domain.errors import EditValidationError
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.batch_pipeline import EditOperation
from src.domain.services.processing_service import ProcessingService

logger = logging.getLogger(__name__)

BATCH_KINDS = ("filter", "adjust")


def edited_name(source_name: str) -> str:
    stem, ext = os.path.splitext(source_name)
    return f"{stem or 'image'}-edited{ext or '.png'}"


@dataclass
class BatchEditUseCase:
    """
    Apply one filter or adjustment prompt to every image in the batch.

    Masking is never used here. Items are handed to the session's pipeline,
    which runs them one after another and records per-item outcomes.
    """

    editor: ImageEditor
    processing: ProcessingService

    def operation_for(self, kind: str) -> EditOperation:
        if kind not in BATCH_KINDS:
            raise EditValidationError(f"Unsupported batch operation: {kind}")
        call = self.editor.apply_filter if kind == "filter" else self.editor.apply_adjustment

        async def operation(source: ImageSnapshot, prompt: str) -> ImageSnapshot:
            data = await call(source, prompt, None)
            snapshot, _ = self.processing.conform(
                data, source.width, source.height, edited_name(source.name)
            )
            return snapshot

        return operation

    def prepare(self, session: EditorSession, prompt: str, kind: str) -> EditOperation:
        """Validate a run request; raises before anything is scheduled."""
        if not session.is_batch_mode:
            raise EditValidationError("No batch is loaded.")
        if not prompt.strip():
            session.error = f"Please enter a prompt for the batch {kind}."
            raise EditValidationError(session.error)
        if session.batch.is_running:
            raise EditValidationError("A batch run is already in progress.")
        operation = self.operation_for(kind)
        session.error = None
        session.batch_prompt = prompt
        session.batch_kind = kind
        return operation

    async def start(self, session: EditorSession, operation: EditOperation, prompt: str) -> list[BatchItem]:
        session.is_loading = True
        try:
            processed = await session.batch.start(operation, prompt)
        finally:
            session.is_loading = False
        done, total = session.batch.progress()
        logger.info("Batch for %s processed %d item(s), %d/%d settled", session.user_id, len(processed), done, total)
        return processed

    def cancel(self, session: EditorSession) -> bool:
        if not session.batch.is_running:
            return False
        session.batch.cancel()
        return True

    def prepare_retry(
        self, session: EditorSession, item_id: str, prompt: str | None, kind: str | None
    ) -> tuple[EditOperation, str]:
        item = session.batch.get(item_id)
        if item is None:
            raise LookupError("Batch item not found")
        # a retry re-issues the same call with the same inputs unless overridden
        prompt = prompt if prompt and prompt.strip() else session.batch_prompt
        kind = kind or session.batch_kind
        if not prompt or not kind:
            raise EditValidationError("No previous batch prompt to retry with.")
        return self.operation_for(kind), prompt

    async def retry(self, session: EditorSession, item_id: str, operation: EditOperation, prompt: str) -> bool:
        return await session.batch.retry(item_id, operation, prompt)

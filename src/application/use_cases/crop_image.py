from __future__ import annotations

import time
from dataclasses import dataclass

from src.application.session.editor_session import EditorSession
from src.domain.entities.snapshot import ImageSnapshot
from src.domain.errors import EditValidationError
from src.domain.services.processing_service import ProcessingService


@dataclass
class CropImageUseCase:
    processing: ProcessingService

    def execute(self, session: EditorSession, device_pixel_ratio: float = 1.0) -> ImageSnapshot:
        """
        Crop the current image to the active selection and commit the result.

        The output is rasterized at selection size times the device pixel
        ratio so it stays sharp on high-density displays.

        Raises:
            EditValidationError: If there is no image or no selection
            ImageDecodeError: If the current snapshot cannot be decoded
        """
        current = session.history.current()
        if current is None:
            session.error = "No image loaded to crop."
            raise EditValidationError(session.error)
        selection = session.selection
        if selection is None or selection.rect.is_empty:
            session.error = "Please select an area to crop."
            raise EditValidationError(session.error)

        try:
            cropped = self.processing.crop(
                current,
                selection.rect,
                selection.displayed_size,
                device_pixel_ratio,
                name=f"cropped-{int(time.time() * 1000)}.png",
            )
        except ValueError as exc:
            session.error = f"Could not process the crop. {exc}"
            raise
        session.error = None
        session.history.commit(cropped)
        return cropped

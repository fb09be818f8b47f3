"""
Tests for the single-image editing use cases.
"""
from __future__ import annotations

import asyncio
import uuid
from unittest.mock import AsyncMock, Mock

import pytest

from src.application.session.editor_session import EditorSession, Selection
from src.application.use_cases.apply_edit import ApplyEditUseCase
from src.application.use_cases.crop_image import CropImageUseCase
from src.application.use_cases.expand_canvas import ExpandCanvasUseCase
from src.application.use_cases.upload_images import UploadImagesUseCase
from src.domain.entities.editor_state import EditorTab, PromptCategory
from src.domain.entities.viewport import Rect
from src.domain.errors import EditorError, EditValidationError, ImageDecodeError
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.ai.gemini_editor import PassthroughImageEditor
from src.infrastructure.database.repositories.prompt_history_repository import (
    PromptHistoryRepository,
)


@pytest.fixture()
def session(make_png):
    s = EditorSession(user_id=f"user-{uuid.uuid4().hex}")
    UploadImagesUseCase(ProcessingService()).execute(s, [("photo.png", make_png(64, 48))])
    return s


@pytest.fixture()
def editor(make_png):
    """Editor double that echoes the source image back."""
    mock = Mock()

    async def echo(image, *args, **kwargs):
        return image.data

    mock.edit_region = AsyncMock(side_effect=echo)
    mock.apply_filter = AsyncMock(side_effect=echo)
    mock.apply_adjustment = AsyncMock(side_effect=echo)
    mock.expand_canvas = AsyncMock(side_effect=lambda data, w, h: data)
    return mock


@pytest.fixture()
def prompt_repo():
    return PromptHistoryRepository(None)


def _uc(editor, prompt_repo):
    return ApplyEditUseCase(editor=editor, processing=ProcessingService(), prompt_repo=prompt_repo)


class TestUploadImagesUseCase:
    def test_single_file_starts_history(self, session):
        assert len(session.history) == 1
        assert session.history.current().name == "photo.png"
        assert session.active_tab is EditorTab.RETOUCH
        assert not session.is_batch_mode
        assert session.view.handle is not None

    def test_several_files_start_batch(self, session, make_png):
        mode = UploadImagesUseCase(ProcessingService()).execute(
            session, [("a.png", make_png()), ("b.png", make_png())]
        )
        assert mode == "batch"
        assert len(session.history) == 0
        assert [item.source.name for item in session.batch.items] == ["a.png", "b.png"]
        assert session.active_tab is EditorTab.ADJUST

    def test_bad_file_leaves_session_untouched(self, session, make_png):
        before = session.history.current()
        with pytest.raises(ImageDecodeError):
            UploadImagesUseCase(ProcessingService()).execute(
                session, [("a.png", make_png()), ("broken.png", b"nope")]
            )
        assert session.history.current() is before
        assert not session.is_batch_mode

    def test_no_files(self, session):
        with pytest.raises(EditValidationError):
            UploadImagesUseCase(ProcessingService()).execute(session, [])


class TestApplyEditUseCase:
    def test_masked_adjustment_commits_once(self, session, editor, prompt_repo):
        session.select_tab(EditorTab.ADJUST)
        session.canvas.enable_masking(32, 24)
        session.canvas.pointer_down(10, 10)
        session.canvas.pointer_up()

        asyncio.run(_uc(editor, prompt_repo).adjust(session, "warmer lighting"))

        assert len(session.history) == 2
        assert session.history.can_undo
        assert session.canvas.masking_enabled
        assert session.canvas.mask_is_blank()
        assert session.error is None
        _, prompt, mask = editor.apply_adjustment.call_args.args
        assert prompt == "warmer lighting"
        # drawn at displayed size, sent at source size
        assert (mask.width, mask.height) == (64, 48)
        assert session.prompts[PromptCategory.ADJUST].items == ["warmer lighting"]
        assert prompt_repo.load(session.user_id, PromptCategory.ADJUST) == ["warmer lighting"]

    def test_unmasked_filter_sends_no_mask(self, session, editor, prompt_repo):
        asyncio.run(_uc(editor, prompt_repo).filter(session, "sepia"))
        assert editor.apply_filter.call_args.args[2] is None
        assert session.history.current().name.startswith("filtered-")

    def test_blank_mask_is_rejected(self, session, editor, prompt_repo):
        session.canvas.enable_masking(64, 48)
        with pytest.raises(EditValidationError):
            asyncio.run(_uc(editor, prompt_repo).filter(session, "sepia"))
        assert session.error
        assert len(session.history) == 1
        editor.apply_filter.assert_not_called()

    def test_empty_prompt_is_rejected(self, session, editor, prompt_repo):
        with pytest.raises(EditValidationError):
            asyncio.run(_uc(editor, prompt_repo).adjust(session, "  "))
        editor.apply_adjustment.assert_not_called()

    def test_edit_requires_selection(self, session, editor, prompt_repo):
        with pytest.raises(EditValidationError):
            asyncio.run(_uc(editor, prompt_repo).edit(session, "remove the car"))
        assert session.error == "Please select an area of the image to edit."

    def test_edit_sends_native_region(self, session, editor, prompt_repo):
        session.selection = Selection(Rect(8, 6, 16, 12), 32, 24)
        asyncio.run(_uc(editor, prompt_repo).edit(session, "remove the car"))
        assert editor.edit_region.call_args.args[2] == Rect(16, 12, 32, 24)
        assert session.selection is None
        assert len(session.history) == 2

    def test_editor_failure_keeps_history(self, session, editor, prompt_repo):
        editor.apply_adjustment.side_effect = EditorError("Request was blocked. Reason: SAFETY.")
        with pytest.raises(EditorError):
            asyncio.run(_uc(editor, prompt_repo).adjust(session, "warmer"))
        assert len(session.history) == 1
        assert session.error == "Failed to apply the adjustment. Request was blocked. Reason: SAFETY."
        assert not session.is_loading
        assert session.prompts[PromptCategory.ADJUST].items == []

    def test_mismatched_result_is_resized(self, session, editor, prompt_repo, make_png):
        editor.apply_filter.side_effect = None
        editor.apply_filter.return_value = make_png(10, 10)
        asyncio.run(_uc(editor, prompt_repo).filter(session, "sepia"))
        assert session.history.current().size == (64, 48)

    def test_commit_after_undo_drops_redo(self, session, editor, prompt_repo):
        uc = _uc(editor, prompt_repo)
        asyncio.run(uc.filter(session, "sepia"))
        session.history.undo()
        asyncio.run(uc.adjust(session, "brighter"))
        assert not session.history.can_redo
        assert len(session.history) == 2


class TestCropImageUseCase:
    def test_crop_commits_new_snapshot(self, session):
        session.selection = Selection(Rect(0, 0, 16, 12), 32, 24)
        out = CropImageUseCase(ProcessingService()).execute(session, device_pixel_ratio=2.0)
        assert out.size == (32, 24)
        assert session.history.current() is out
        assert session.selection is None

    def test_crop_without_selection(self, session):
        with pytest.raises(EditValidationError):
            CropImageUseCase(ProcessingService()).execute(session)
        assert session.error == "Please select an area to crop."


class TestExpandCanvasUseCase:
    def test_expand_to_wider_aspect(self, make_png):
        s = EditorSession(user_id="expand-user")
        UploadImagesUseCase(ProcessingService()).execute(s, [("sq.png", make_png(100, 100))])
        out = asyncio.run(
            ExpandCanvasUseCase(PassthroughImageEditor(), ProcessingService()).execute(s, "16:9")
        )
        assert out.size == (178, 100)
        assert len(s.history) == 2

    def test_same_aspect_rejected(self, make_png):
        s = EditorSession(user_id="expand-user-2")
        UploadImagesUseCase(ProcessingService()).execute(s, [("sq.png", make_png(100, 100))])
        with pytest.raises(EditValidationError):
            asyncio.run(ExpandCanvasUseCase(PassthroughImageEditor(), ProcessingService()).execute(s, "1:1"))
        assert s.error == "The image already has this aspect ratio."
        assert len(s.history) == 1

    def test_unknown_aspect(self, session):
        with pytest.raises(EditValidationError):
            asyncio.run(ExpandCanvasUseCase(PassthroughImageEditor(), ProcessingService()).execute(session, "5:4"))

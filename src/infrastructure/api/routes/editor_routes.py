from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse, Response

from src.application.dtos.common_dto import SuccessResponse
from src.application.dtos.editor_dto import (
    CropRequest,
    EditorStateResponse,
    ExpandRequest,
    PromptRequest,
    SelectionInfo,
    SelectionRequest,
    SnapshotInfo,
    TabRequest,
    UploadResponse,
)
from src.application.session.editor_session import EditorSession, Selection
from src.application.use_cases.apply_edit import ApplyEditUseCase
from src.application.use_cases.batch_edit import BatchEditUseCase
from src.application.use_cases.crop_image import CropImageUseCase
from src.application.use_cases.expand_canvas import ExpandCanvasUseCase
from src.application.use_cases.session_persistence import SessionPersistenceUseCase
from src.application.use_cases.upload_images import UploadImagesUseCase
from src.domain.entities.editor_state import EditorTab
from src.domain.entities.viewport import Rect
from src.domain.errors import EditValidationError, ImageDecodeError
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.api.dependencies import (
    get_editor_session,
    get_image_editor,
    get_processing_service,
    get_prompt_repo,
    get_session_repo,
)
from src.infrastructure.api.errors import to_http_error
from src.infrastructure.api.routes.batch_routes import batch_status
from src.infrastructure.database.repositories.prompt_history_repository import (
    PromptHistoryRepository,
)
from src.infrastructure.database.repositories.session_repository import SessionRepository

router = APIRouter(
    prefix="/editor",
    tags=["Editor"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def editor_state(session: EditorSession) -> EditorStateResponse:
    history = session.history
    current = history.current()
    original = history.original()
    if session.is_batch_mode:
        mode = "batch"
    elif current is not None:
        mode = "single"
    else:
        mode = "empty"
    selection = None
    if session.selection is not None:
        rect = session.selection.rect
        selection = SelectionInfo(
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
            displayed_width=session.selection.displayed_width,
            displayed_height=session.selection.displayed_height,
        )
    return EditorStateResponse(
        mode=mode,
        active_tab=session.active_tab.value,
        cursor=history.cursor,
        history_length=len(history),
        can_undo=history.can_undo,
        can_redo=history.can_redo,
        current=SnapshotInfo.from_entity(current) if current else None,
        original=SnapshotInfo.from_entity(original) if original else None,
        selection=selection,
        masking_enabled=session.canvas.masking_enabled,
        is_loading=session.is_loading,
        error=session.error,
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Images",
    description="""
    Start a new editing workload from one or more image files.

    - **One file** starts a fresh single-image history (the upload becomes the
      original, tab switches to *retouch*).
    - **Several files** clear the history and create one pending batch item per
      file (tab switches to *adjust*).

    Every file is decoded before anything changes, so a single bad file
    rejects the whole upload and leaves the session as it was.
    """,
    response_description="Resulting mode and editor state",
    responses={400: {"description": "Bad Request - No files or an undecodable image"}},
)
async def upload_images(
    files: list[UploadFile] = File(..., description="Image files to edit"),
    session: EditorSession = Depends(get_editor_session),
    processing: ProcessingService = Depends(get_processing_service),
):
    """Load the uploaded images into the session."""
    payload = []
    for index, file in enumerate(files):
        data = await file.read()
        payload.append((file.filename or f"image-{index + 1}.png", data))
    try:
        mode = UploadImagesUseCase(processing=processing).execute(session, payload)
    except (EditValidationError, ImageDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid upload: {exc}") from exc
    return UploadResponse(mode=mode, state=editor_state(session))


@router.get(
    "/state",
    response_model=EditorStateResponse,
    summary="Get Editor State",
    description="Current history position, active tab, pending selection and last error.",
)
def get_state(session: EditorSession = Depends(get_editor_session)):
    return editor_state(session)


@router.get(
    "/image/current",
    summary="Current Image",
    description="""
    Bytes of the snapshot at the history cursor.

    Pass `preview` to receive a PNG scaled down so its longest side is at most
    that many pixels; previews are rendered from the session's live view handle.
    """,
    responses={
        200: {"content": {"image/png": {}}, "description": "Image bytes"},
        404: {"description": "Not Found - No image loaded"},
    },
)
def get_current_image(
    preview: int | None = Query(None, ge=16, le=4096, description="Longest side of a PNG preview"),
    session: EditorSession = Depends(get_editor_session),
):
    current = session.history.current()
    if current is None:
        raise HTTPException(status_code=404, detail="No image loaded")
    if preview is not None:
        handle = session.view.acquire(current)
        return Response(content=handle.preview_png(preview), media_type="image/png")
    return Response(content=current.data, media_type=current.mime_type)


@router.get(
    "/image/original",
    summary="Original Image",
    description="Bytes of the first snapshot, used for before/after comparison.",
    responses={404: {"description": "Not Found - No image loaded"}},
)
def get_original_image(session: EditorSession = Depends(get_editor_session)):
    original = session.history.original()
    if original is None:
        raise HTTPException(status_code=404, detail="No image loaded")
    return Response(content=original.data, media_type=original.mime_type)


@router.post("/undo", response_model=EditorStateResponse, summary="Undo")
def undo(session: EditorSession = Depends(get_editor_session)):
    """Step back one snapshot; a no-op at the original."""
    session.history.undo()
    return editor_state(session)


@router.post("/redo", response_model=EditorStateResponse, summary="Redo")
def redo(session: EditorSession = Depends(get_editor_session)):
    """Step forward one snapshot; a no-op at the newest."""
    session.history.redo()
    return editor_state(session)


@router.post(
    "/reset",
    response_model=EditorStateResponse,
    summary="Reset To Original",
    description="Move the cursor back to the original upload. Later snapshots stay redoable.",
)
def reset(session: EditorSession = Depends(get_editor_session)):
    session.history.reset_to_original()
    return editor_state(session)


@router.put("/tab", response_model=EditorStateResponse, summary="Select Tool Tab")
def select_tab(body: TabRequest, session: EditorSession = Depends(get_editor_session)):
    session.select_tab(EditorTab(body.tab))
    return editor_state(session)


@router.put(
    "/selection",
    response_model=EditorStateResponse,
    summary="Set Selection",
    description="""
    Store the rectangle drawn over the displayed image. It is used by retouch
    (as the edit region) and crop (as the crop area), and is dropped whenever
    the history changes.
    """,
)
def set_selection(body: SelectionRequest, session: EditorSession = Depends(get_editor_session)):
    if session.history.current() is None:
        raise HTTPException(status_code=404, detail="No image loaded")
    session.selection = Selection(
        rect=Rect(body.x, body.y, body.width, body.height),
        displayed_width=body.displayed_width,
        displayed_height=body.displayed_height,
    )
    return editor_state(session)


@router.delete("/selection", response_model=EditorStateResponse, summary="Clear Selection")
def clear_selection(session: EditorSession = Depends(get_editor_session)):
    session.selection = None
    return editor_state(session)


@router.post(
    "/edit",
    response_model=EditorStateResponse,
    summary="Generative Edit",
    description="""
    Change the selected region of the current image as described by the prompt.

    Requires a non-empty prompt and a selection. The selection is converted to
    native pixels before it is sent. On success the result becomes a new
    snapshot and the prompt is remembered in the *edit* prompt history.
    """,
    responses={
        400: {"description": "Bad Request - Missing prompt or selection"},
        502: {"description": "Bad Gateway - The image model failed or returned no image"},
    },
)
async def edit(
    body: PromptRequest,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
    prompts: PromptHistoryRepository = Depends(get_prompt_repo),
):
    uc = ApplyEditUseCase(editor=editor, processing=processing, prompt_repo=prompts)
    try:
        await uc.edit(session, body.prompt)
    except Exception as exc:
        raise to_http_error(exc) from exc
    return editor_state(session)


async def _filter_or_adjust(
    kind: str,
    body: PromptRequest,
    session: EditorSession,
    editor: ImageEditor,
    processing: ProcessingService,
    prompts: PromptHistoryRepository,
    background_tasks: BackgroundTasks,
):
    if session.is_batch_mode:
        batch = BatchEditUseCase(editor=editor, processing=processing)
        try:
            operation = batch.prepare(session, body.prompt, kind)
        except EditValidationError as exc:
            raise to_http_error(exc) from exc
        background_tasks.add_task(batch.start, session, operation, body.prompt)
        content = batch_status(session).model_dump(mode="json")
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=content)

    uc = ApplyEditUseCase(editor=editor, processing=processing, prompt_repo=prompts)
    try:
        if kind == "filter":
            await uc.filter(session, body.prompt)
        else:
            await uc.adjust(session, body.prompt)
    except Exception as exc:
        raise to_http_error(exc) from exc
    return editor_state(session)


@router.post(
    "/filter",
    response_model=EditorStateResponse,
    summary="Apply Filter",
    description="""
    Apply a stylistic filter to the current image.

    When masking is on, only the painted area is changed and an empty mask is
    rejected. In batch mode the filter is queued for every pending or failed
    image instead and the call answers **202** with the batch status.
    """,
    responses={
        202: {"description": "Accepted - Batch run scheduled"},
        400: {"description": "Bad Request - Missing prompt or blank mask"},
        502: {"description": "Bad Gateway - The image model failed or returned no image"},
    },
)
async def apply_filter(
    body: PromptRequest,
    background_tasks: BackgroundTasks,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
    prompts: PromptHistoryRepository = Depends(get_prompt_repo),
):
    return await _filter_or_adjust("filter", body, session, editor, processing, prompts, background_tasks)


@router.post(
    "/adjust",
    response_model=EditorStateResponse,
    summary="Apply Adjustment",
    description="""
    Apply a photographic adjustment (lighting, color, tone) to the current image.

    Masking and batch behaviour are the same as for filters.
    """,
    responses={
        202: {"description": "Accepted - Batch run scheduled"},
        400: {"description": "Bad Request - Missing prompt or blank mask"},
        502: {"description": "Bad Gateway - The image model failed or returned no image"},
    },
)
async def apply_adjustment(
    body: PromptRequest,
    background_tasks: BackgroundTasks,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
    prompts: PromptHistoryRepository = Depends(get_prompt_repo),
):
    return await _filter_or_adjust("adjust", body, session, editor, processing, prompts, background_tasks)


@router.post(
    "/crop",
    response_model=EditorStateResponse,
    summary="Crop",
    description="""
    Crop the current image to the selection, locally.

    The selection is mapped to native pixels and the output is rendered at
    selection size times `device_pixel_ratio` with Lanczos resampling.
    """,
    responses={400: {"description": "Bad Request - No selection, or selection outside the image"}},
)
def crop(
    body: CropRequest | None = None,
    session: EditorSession = Depends(get_editor_session),
    processing: ProcessingService = Depends(get_processing_service),
):
    ratio = body.device_pixel_ratio if body else 1.0
    try:
        CropImageUseCase(processing=processing).execute(session, ratio)
    except Exception as exc:
        raise to_http_error(exc) from exc
    return editor_state(session)


@router.post(
    "/expand",
    response_model=EditorStateResponse,
    summary="Expand Canvas",
    description="""
    Generative uncrop to one of the preset aspect ratios (16:9, 4:3, 1:1, 3:2).

    The image is centered on a transparent canvas of the target aspect (longest
    side capped, 2048 px by default) and the model fills in the surround.
    An image that already has the requested aspect is rejected.
    """,
    responses={
        400: {"description": "Bad Request - No image or aspect already matches"},
        502: {"description": "Bad Gateway - The image model failed or returned no image"},
    },
)
async def expand(
    body: ExpandRequest,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
):
    try:
        await ExpandCanvasUseCase(editor=editor, processing=processing).execute(session, body.aspect)
    except Exception as exc:
        raise to_http_error(exc) from exc
    return editor_state(session)


@router.post(
    "/start-over",
    response_model=SuccessResponse,
    summary="Start Over",
    description="Clear the history, the batch, the error and the saved session.",
)
def start_over(
    session: EditorSession = Depends(get_editor_session),
    sessions: SessionRepository = Depends(get_session_repo),
    processing: ProcessingService = Depends(get_processing_service),
):
    try:
        SessionPersistenceUseCase(sessions=sessions, processing=processing).discard(session)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SuccessResponse(message="Session cleared")

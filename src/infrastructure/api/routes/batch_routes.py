from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import Response

from src.application.dtos.batch_dto import (
    BatchItemInfo,
    BatchRetryRequest,
    BatchStartRequest,
    BatchStatusResponse,
)
from src.application.session.editor_session import EditorSession
from src.application.use_cases.batch_edit import BatchEditUseCase
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.api.dependencies import (
    get_editor_session,
    get_image_editor,
    get_processing_service,
)
from src.infrastructure.api.errors import to_http_error

router = APIRouter(
    prefix="/batch",
    tags=["Batch Processing"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def batch_status(session: EditorSession) -> BatchStatusResponse:
    pipeline = session.batch
    processed, total = pipeline.progress()
    return BatchStatusResponse(
        items=[BatchItemInfo.from_entity(item) for item in pipeline.items],
        processed=processed,
        total=total,
        running=pipeline.is_running,
        cancel_requested=pipeline.cancel_requested,
        prompt=session.batch_prompt,
        kind=session.batch_kind,
    )


@router.get(
    "",
    response_model=BatchStatusResponse,
    summary="Batch Status",
    description="Every batch item with its status, plus the processed/total counter.",
)
def get_batch(session: EditorSession = Depends(get_editor_session)):
    return batch_status(session)


@router.post(
    "/start",
    response_model=BatchStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start Batch",
    description="""
    Run one filter or adjustment prompt over the batch.

    Pending and failed items are processed strictly one after another, in
    upload order, after this response is sent. Items already done are left
    alone. Poll `GET /batch` for progress.
    """,
    responses={400: {"description": "Bad Request - No batch, empty prompt, or a run in progress"}},
)
def start_batch(
    body: BatchStartRequest,
    background_tasks: BackgroundTasks,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
):
    uc = BatchEditUseCase(editor=editor, processing=processing)
    try:
        operation = uc.prepare(session, body.prompt, body.kind)
    except ValueError as exc:
        raise to_http_error(exc) from exc
    background_tasks.add_task(uc.start, session, operation, body.prompt)
    return batch_status(session)


@router.post(
    "/cancel",
    response_model=BatchStatusResponse,
    summary="Cancel Batch",
    description="""
    Ask the running batch to stop. The item being processed finishes; every
    item after it stays pending. Returns 409 when no run is in progress.
    """,
    responses={409: {"description": "Conflict - No batch run in progress"}},
)
def cancel_batch(
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
):
    if not BatchEditUseCase(editor=editor, processing=processing).cancel(session):
        raise HTTPException(status_code=409, detail="No batch run in progress")
    return batch_status(session)


@router.post(
    "/items/{item_id}/retry",
    response_model=BatchStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retry Batch Item",
    description="""
    Re-run one failed item with the prompt and operation of the last run
    (optionally overridden). Only items in the *error* state can be retried,
    and only while no batch run or other retry is in progress;
    anything else answers 409.
    """,
    responses={
        404: {"description": "Not Found - Unknown batch item"},
        409: {"description": "Conflict - Item is not in the error state, or a run is in progress"},
    },
)
def retry_item(
    item_id: str,
    background_tasks: BackgroundTasks,
    body: BatchRetryRequest | None = None,
    session: EditorSession = Depends(get_editor_session),
    editor: ImageEditor = Depends(get_image_editor),
    processing: ProcessingService = Depends(get_processing_service),
):
    uc = BatchEditUseCase(editor=editor, processing=processing)
    body = body or BatchRetryRequest()
    try:
        operation, prompt = uc.prepare_retry(session, item_id, body.prompt, body.kind)
    except (LookupError, ValueError) as exc:
        raise to_http_error(exc) from exc
    if not session.batch.can_retry(item_id):
        raise HTTPException(
            status_code=409, detail="Only failed items can be retried, and not while a batch is running"
        )
    background_tasks.add_task(uc.retry, session, item_id, operation, prompt)
    return batch_status(session)


@router.get(
    "/items/{item_id}/result",
    summary="Batch Item Result",
    description="Bytes of the edited image for an item that is done.",
    responses={
        200: {"content": {"image/png": {}}, "description": "Image bytes"},
        404: {"description": "Not Found - Unknown item or no result yet"},
    },
)
def get_item_result(item_id: str, session: EditorSession = Depends(get_editor_session)):
    item = session.batch.get(item_id)
    if item is None or item.result is None:
        raise HTTPException(status_code=404, detail="No result for this item")
    filename = item.result.name.replace('"', "")
    return Response(
        content=item.result.data,
        media_type=item.result.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

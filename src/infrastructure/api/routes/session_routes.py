from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.application.dtos.common_dto import SuccessResponse
from src.application.dtos.editor_dto import EditorStateResponse
from src.application.dtos.session_dto import SavedSessionResponse
from src.application.session.editor_session import EditorSession
from src.application.use_cases.session_persistence import SessionPersistenceUseCase
from src.domain.errors import ImageDecodeError
from src.domain.services.processing_service import ProcessingService
from src.infrastructure.api.dependencies import (
    get_editor_session,
    get_processing_service,
    get_session_repo,
)
from src.infrastructure.api.routes.editor_routes import editor_state
from src.infrastructure.database.repositories.session_repository import SessionRepository

router = APIRouter(
    prefix="/session",
    tags=["Saved Session"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        502: {"description": "Bad Gateway - The session store failed"},
    },
)


def _persistence(
    sessions: SessionRepository = Depends(get_session_repo),
    processing: ProcessingService = Depends(get_processing_service),
) -> SessionPersistenceUseCase:
    return SessionPersistenceUseCase(sessions=sessions, processing=processing)


@router.get(
    "/saved",
    response_model=SavedSessionResponse,
    summary="Saved Session",
    description="""
    Describe the saved session, if any, so the client can offer to restore it.
    Nothing is loaded until `POST /session/restore` is called.
    """,
)
def get_saved(
    session: EditorSession = Depends(get_editor_session),
    persistence: SessionPersistenceUseCase = Depends(_persistence),
):
    try:
        record = persistence.peek(session.user_id)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if record is None:
        return SavedSessionResponse(exists=False)
    return SavedSessionResponse(
        exists=True,
        image_count=len(record.images),
        cursor_index=record.cursor_index,
        saved_at=record.saved_at,
    )


@router.post(
    "/save",
    response_model=SuccessResponse,
    summary="Save Now",
    description="Write the history immediately instead of waiting for the debounced save.",
    responses={409: {"description": "Conflict - Nothing to save"}},
)
def save_now(
    session: EditorSession = Depends(get_editor_session),
    persistence: SessionPersistenceUseCase = Depends(_persistence),
):
    if session.saver is not None:
        session.saver.cancel()
    try:
        record = persistence.save(session)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if record is None:
        raise HTTPException(status_code=409, detail="Nothing to save")
    return SuccessResponse(message=f"Saved {len(record.images)} image(s)")


@router.post(
    "/restore",
    response_model=EditorStateResponse,
    summary="Restore Saved Session",
    description="Load the saved history and cursor into the editor, replacing what is open.",
    responses={404: {"description": "Not Found - No saved session"}},
)
def restore(
    session: EditorSession = Depends(get_editor_session),
    persistence: SessionPersistenceUseCase = Depends(_persistence),
):
    try:
        restored = persistence.restore(session)
    except ImageDecodeError as exc:
        raise HTTPException(status_code=502, detail=f"Saved session is corrupt: {exc}") from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if not restored:
        raise HTTPException(status_code=404, detail="No saved session")
    return editor_state(session)


@router.delete(
    "",
    response_model=SuccessResponse,
    summary="Discard Saved Session",
    description="Decline restoration: the saved record is deleted and the editor starts empty.",
)
def discard(
    session: EditorSession = Depends(get_editor_session),
    persistence: SessionPersistenceUseCase = Depends(_persistence),
):
    try:
        persistence.discard(session)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SuccessResponse(message="Saved session discarded")

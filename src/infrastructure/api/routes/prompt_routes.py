from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.application.dtos.common_dto import PromptListResponse
from src.application.session.editor_session import EditorSession
from src.domain.entities.editor_state import PromptCategory
from src.infrastructure.api.dependencies import get_editor_session, get_prompt_repo
from src.infrastructure.database.repositories.prompt_history_repository import (
    PromptHistoryRepository,
)

router = APIRouter(
    prefix="/prompts",
    tags=["Prompt History"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Unknown prompt category"},
    },
)


@router.get(
    "/{category}",
    response_model=PromptListResponse,
    summary="Recent Prompts",
    description="""
    Up to 20 recently used prompts for `edit`, `adjust` or `filter`, newest
    first. A prompt is added after each successful operation; re-using a prompt
    moves it to the front (matching ignores case).
    """,
)
def list_prompts(category: PromptCategory, session: EditorSession = Depends(get_editor_session)):
    return PromptListResponse(category=category.value, prompts=session.prompts[category].items)


@router.delete(
    "/{category}",
    response_model=PromptListResponse,
    summary="Clear Prompt History",
    responses={502: {"description": "Bad Gateway - The prompt store could not be updated"}},
)
def clear_prompts(
    category: PromptCategory,
    session: EditorSession = Depends(get_editor_session),
    prompts: PromptHistoryRepository = Depends(get_prompt_repo),
):
    try:
        prompts.clear(session.user_id, category)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    session.prompts[category].clear()
    return PromptListResponse(category=category.value, prompts=[])

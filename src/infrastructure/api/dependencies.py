from __future__ import annotations

import logging
import os
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.application.session.editor_session import EditorSession, get_registry
from src.application.use_cases.session_persistence import SessionPersistenceUseCase
from src.domain.entities.editor_state import PromptCategory
from src.domain.interfaces.image_editor import ImageEditor
from src.domain.services.processing_service import ProcessingService
from src.domain.services.prompt_history import PromptHistory
from src.infrastructure.ai.gemini_editor import GeminiImageEditor, PassthroughImageEditor
from src.infrastructure.database.repositories.prompt_history_repository import (
    PromptHistoryRepository,
)
from src.infrastructure.database.repositories.session_repository import SessionRepository
from src.infrastructure.database.supabase_client import (
    SupabaseAuthAdapter,
    UserInfo,
    get_supabase_client,
)

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_adapter() -> SupabaseAuthAdapter:
    return SupabaseAuthAdapter()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))


def get_image_editor() -> ImageEditor:
    if os.getenv("GEMINI_DISABLED", "0") == "1":
        return PassthroughImageEditor()
    return GeminiImageEditor()


def get_session_repo() -> SessionRepository:
    return SessionRepository(get_supabase_client())


def get_prompt_repo() -> PromptHistoryRepository:
    return PromptHistoryRepository(get_supabase_client())


def get_processing_service() -> ProcessingService:
    return ProcessingService()


def get_editor_session(
    user: Annotated[UserInfo, Depends(get_current_user)],
    prompt_repo: Annotated[PromptHistoryRepository, Depends(get_prompt_repo)],
    sessions: Annotated[SessionRepository, Depends(get_session_repo)],
    processing: Annotated[ProcessingService, Depends(get_processing_service)],
) -> EditorSession:
    registry = get_registry()
    session = registry.get(user.id)
    if session is not None:
        return session

    session = registry.create(user.id)
    for category in PromptCategory:
        try:
            session.prompts[category] = PromptHistory(prompt_repo.load(user.id, category))
        except RuntimeError as exc:
            logger.warning("Could not load %s prompt history for %s: %s", category.value, user.id, exc)
    SessionPersistenceUseCase(sessions=sessions, processing=processing).attach(session)
    logger.info("Created editing session for %s", user.id)
    return session

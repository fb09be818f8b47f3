from __future__ import annotations

import logging

from fastapi import HTTPException, status

from src.domain.errors import EditorError, EditValidationError, ImageDecodeError

logger = logging.getLogger(__name__)


def to_http_error(exc: Exception) -> HTTPException:
    """Translate an editing failure into the HTTP status the client should see."""
    if isinstance(exc, EditValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc) or "Not found")
    if isinstance(exc, (EditorError, ImageDecodeError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.exception("Unexpected editing failure")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc) or "Operation failed")

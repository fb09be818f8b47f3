from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.batch_routes import router as batch_router
from src.infrastructure.api.routes.canvas_routes import router as canvas_router
from src.infrastructure.api.routes.editor_routes import router as editor_router
from src.infrastructure.api.routes.prompt_routes import router as prompt_router
from src.infrastructure.api.routes.session_routes import router as session_router


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Pixelshop Backend",
        version="0.1.0",
        description="""
        ## Pixelshop Backend API

        FastAPI backend for a prompt-driven image editor: generative retouching,
        filters and adjustments (optionally masked), local cropping, generative
        canvas expansion and batch processing, with linear undo/redo history.

        ### Features
        - **Edit History**: Every operation commits an immutable snapshot; undo, redo
          and reset to original move a cursor through them
        - **Canvas**: Zoom about the cursor, pan, and paint masks at any zoom level
        - **Batch Processing**: Apply one filter or adjustment to many images, one at a
          time, with cancel and per-item retry
        - **Prompt History**: The last 20 prompts per tool, newest first
        - **Saved Session**: The history is saved shortly after each change and can be
          restored on the next visit

        ### Authentication
        All endpoints (except root and health) require authentication via Bearer token
        in the Authorization header:
        ```
        Authorization: Bearer your-jwt-token
        ```

        ### Error Responses
        - **400 Bad Request**: Missing prompt, selection or mask, or an invalid image
        - **401 Unauthorized**: Missing or invalid authentication token
        - **404 Not Found**: No image loaded, unknown batch item, or nothing saved
        - **409 Conflict**: The operation does not apply in the current state
        - **422 Unprocessable Entity**: Validation error in request body
        - **502 Bad Gateway**: The image model or the session store failed
        """,
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Pixelshop API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "pixelshop-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(editor_router)
    app.include_router(canvas_router)
    app.include_router(batch_router)
    app.include_router(prompt_router)
    app.include_router(session_router)
    return app


app = create_app()

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from src.application.dtos.canvas_dto import (
    BrushRequest,
    CanvasStateResponse,
    MaskingRequest,
    PointerRequest,
    WheelRequest,
    ZoomRequest,
)
from src.application.session.editor_session import EditorSession
from src.domain.services.canvas_service import CanvasController, Drawing, Panning
from src.infrastructure.api.dependencies import get_editor_session

router = APIRouter(
    prefix="/canvas",
    tags=["Canvas"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def canvas_state(canvas: CanvasController) -> CanvasStateResponse:
    gesture = canvas.gesture
    if isinstance(gesture, Drawing):
        name = "drawing"
    elif isinstance(gesture, Panning):
        name = "panning"
    else:
        name = "idle"
    return CanvasStateResponse(
        zoom=canvas.viewport.zoom,
        pan_x=canvas.viewport.pan_x,
        pan_y=canvas.viewport.pan_y,
        gesture=name,
        masking_enabled=canvas.masking_enabled,
        mask_blank=canvas.mask_is_blank(),
        brush_size=canvas.brush_size,
        mask_width=canvas.mask.width if canvas.mask else None,
        mask_height=canvas.mask.height if canvas.mask else None,
    )


@router.get("", response_model=CanvasStateResponse, summary="Canvas State")
def get_canvas(session: EditorSession = Depends(get_editor_session)):
    return canvas_state(session.canvas)


@router.post(
    "/wheel",
    response_model=CanvasStateResponse,
    summary="Wheel Zoom",
    description="""
    Zoom about the cursor: the image point under `(x, y)` stays under it.
    Each notch scales by 1.1 and zoom is clamped to [0.1, 5.0].
    """,
)
def wheel(body: WheelRequest, session: EditorSession = Depends(get_editor_session)):
    session.canvas.wheel(body.x, body.y, body.delta_y)
    return canvas_state(session.canvas)


@router.post(
    "/zoom",
    response_model=CanvasStateResponse,
    summary="Zoom In/Out",
    description="Step zoom by 1.2 about the given anchor, usually the canvas center.",
)
def zoom(body: ZoomRequest, session: EditorSession = Depends(get_editor_session)):
    if body.direction == "in":
        session.canvas.zoom_in(body.anchor_x, body.anchor_y)
    else:
        session.canvas.zoom_out(body.anchor_x, body.anchor_y)
    return canvas_state(session.canvas)


@router.post("/reset-view", response_model=CanvasStateResponse, summary="Reset View")
def reset_view(session: EditorSession = Depends(get_editor_session)):
    """Back to zoom 1 with no pan."""
    session.canvas.reset_view()
    return canvas_state(session.canvas)


@router.put(
    "/masking",
    response_model=CanvasStateResponse,
    summary="Toggle Masking",
    description="""
    Turn masking mode on or off. Turning it on creates a fresh, blank mask at
    the displayed image size (the native size when none is given); while it is
    on, drags paint into the mask instead of panning.
    """,
    responses={404: {"description": "Not Found - No image loaded"}},
)
def set_masking(body: MaskingRequest, session: EditorSession = Depends(get_editor_session)):
    if not body.enabled:
        session.canvas.disable_masking()
        return canvas_state(session.canvas)
    current = session.history.current()
    if current is None:
        raise HTTPException(status_code=404, detail="No image loaded")
    width = body.displayed_width or current.width
    height = body.displayed_height or current.height
    session.canvas.enable_masking(width, height)
    return canvas_state(session.canvas)


@router.put("/brush", response_model=CanvasStateResponse, summary="Set Brush Size")
def set_brush(body: BrushRequest, session: EditorSession = Depends(get_editor_session)):
    session.canvas.set_brush_size(body.size)
    return canvas_state(session.canvas)


@router.post(
    "/pointer/down",
    response_model=CanvasStateResponse,
    summary="Pointer Down",
    description="Begin a stroke (masking on) or a pan drag (masking off). Ignored mid-gesture.",
)
def pointer_down(body: PointerRequest, session: EditorSession = Depends(get_editor_session)):
    session.canvas.pointer_down(body.x, body.y)
    return canvas_state(session.canvas)


@router.post("/pointer/move", response_model=CanvasStateResponse, summary="Pointer Move")
def pointer_move(body: PointerRequest, session: EditorSession = Depends(get_editor_session)):
    session.canvas.pointer_move(body.x, body.y)
    return canvas_state(session.canvas)


@router.post("/pointer/up", response_model=CanvasStateResponse, summary="Pointer Up / Leave")
def pointer_up(session: EditorSession = Depends(get_editor_session)):
    session.canvas.pointer_up()
    return canvas_state(session.canvas)


@router.delete("/mask", response_model=CanvasStateResponse, summary="Clear Mask")
def clear_mask(session: EditorSession = Depends(get_editor_session)):
    session.canvas.clear_mask()
    return canvas_state(session.canvas)


@router.get(
    "/mask",
    summary="Mask Preview",
    description="The flattened black/white mask PNG that would be sent with the next edit.",
    responses={
        200: {"content": {"image/png": {}}, "description": "Mask PNG"},
        404: {"description": "Not Found - Masking off or mask blank"},
    },
)
def get_mask(session: EditorSession = Depends(get_editor_session)):
    artifact = session.canvas.export_mask()
    if artifact is None:
        raise HTTPException(status_code=404, detail="Mask is empty")
    return Response(content=artifact.data, media_type=artifact.mime_type)

from __future__ import annotations

from pydantic import BaseModel, Field


class PointerRequest(BaseModel):
    """Pointer position relative to the canvas element (viewport pixels)."""
    x: float = Field(..., description="Viewport X coordinate", examples=[110.0])
    y: float = Field(..., description="Viewport Y coordinate", examples=[110.0])


class WheelRequest(PointerRequest):
    delta_y: float = Field(..., description="Wheel delta; negative zooms in", examples=[-100.0])


class ZoomRequest(BaseModel):
    direction: str = Field(..., description="'in' or 'out'", pattern="^(in|out)$")
    anchor_x: float = Field(0.0, description="Viewport X to zoom about (usually the canvas center)")
    anchor_y: float = Field(0.0, description="Viewport Y to zoom about (usually the canvas center)")


class MaskingRequest(BaseModel):
    enabled: bool = Field(..., description="Turn masking mode on or off")
    displayed_width: int | None = Field(None, description="Displayed image width", gt=0)
    displayed_height: int | None = Field(None, description="Displayed image height", gt=0)


class BrushRequest(BaseModel):
    size: float = Field(..., description="Brush size in screen pixels", ge=1, le=200, examples=[40.0])


class CanvasStateResponse(BaseModel):
    zoom: float = Field(..., description="Current zoom factor", examples=[1.0])
    pan_x: float = Field(..., description="Horizontal pan in viewport pixels")
    pan_y: float = Field(..., description="Vertical pan in viewport pixels")
    gesture: str = Field(..., description="'idle', 'drawing' or 'panning'")
    masking_enabled: bool
    mask_blank: bool = Field(True, description="Whether the mask has no strokes")
    brush_size: float
    mask_width: int | None = None
    mask_height: int | None = None

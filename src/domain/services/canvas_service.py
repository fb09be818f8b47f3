from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities.snapshot import MaskArtifact
from src.domain.entities.viewport import Point, ViewportTransform
from src.domain.services.geometry_service import GeometryService
from src.domain.services.mask_service import MaskRasterizer

WHEEL_ZOOM_STEP = 1.1
BUTTON_ZOOM_STEP = 1.2
DEFAULT_BRUSH_SIZE = 40.0
MIN_BRUSH_SIZE = 1.0
MAX_BRUSH_SIZE = 200.0


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Drawing:
    last_point: Point  # image space


@dataclass(frozen=True)
class Panning:
    last_viewport: Point


Gesture = Idle | Drawing | Panning


class CanvasController:
    """Pointer gestures over the displayed image.

    A drag either paints into the mask (masking enabled) or pans the view,
    never both; the active gesture is held explicitly in ``gesture``.
    """

    def __init__(self) -> None:
        self.viewport = ViewportTransform()
        self.mask: MaskRasterizer | None = None
        self.brush_size = DEFAULT_BRUSH_SIZE
        self.gesture: Gesture = Idle()

    @property
    def masking_enabled(self) -> bool:
        return self.mask is not None

    # --------- viewport ---------
    def wheel(self, vx: float, vy: float, delta_y: float) -> ViewportTransform:
        if delta_y == 0:
            return self.viewport
        factor = WHEEL_ZOOM_STEP if delta_y < 0 else 1 / WHEEL_ZOOM_STEP
        return self.zoom_to(self.viewport.zoom * factor, vx, vy)

    def zoom_in(self, vx: float = 0.0, vy: float = 0.0) -> ViewportTransform:
        return self.zoom_to(self.viewport.zoom * BUTTON_ZOOM_STEP, vx, vy)

    def zoom_out(self, vx: float = 0.0, vy: float = 0.0) -> ViewportTransform:
        return self.zoom_to(self.viewport.zoom / BUTTON_ZOOM_STEP, vx, vy)

    def zoom_to(self, zoom: float, vx: float, vy: float) -> ViewportTransform:
        self.viewport = GeometryService.zoom_about(self.viewport, zoom, vx, vy)
        return self.viewport

    def reset_view(self) -> ViewportTransform:
        self.viewport.reset()
        return self.viewport

    # --------- masking mode ---------
    def enable_masking(self, displayed_width: int, displayed_height: int) -> None:
        self.mask = MaskRasterizer(displayed_width, displayed_height)
        self.gesture = Idle()

    def disable_masking(self) -> None:
        self.mask = None
        if isinstance(self.gesture, Drawing):
            self.gesture = Idle()

    def clear_mask(self) -> None:
        if self.mask is not None:
            self.mask.clear()

    def set_brush_size(self, size: float) -> float:
        self.brush_size = min(MAX_BRUSH_SIZE, max(MIN_BRUSH_SIZE, float(size)))
        return self.brush_size

    def export_mask(self) -> MaskArtifact | None:
        return self.mask.export() if self.mask is not None else None

    def mask_is_blank(self) -> bool:
        return self.mask is None or self.mask.is_blank()

    # --------- pointer events ---------
    def stroke_width(self) -> float:
        return self.brush_size / self.viewport.zoom

    def pointer_down(self, vx: float, vy: float) -> Gesture:
        if not isinstance(self.gesture, Idle):
            return self.gesture
        if self.mask is not None:
            point = GeometryService.to_image_space(vx, vy, self.viewport)
            self.mask.dot(point, self.stroke_width())
            self.gesture = Drawing(point)
        else:
            self.gesture = Panning(Point(vx, vy))
        return self.gesture

    def pointer_move(self, vx: float, vy: float) -> Gesture:
        gesture = self.gesture
        if isinstance(gesture, Drawing) and self.mask is not None:
            point = GeometryService.to_image_space(vx, vy, self.viewport)
            self.mask.line(gesture.last_point, point, self.stroke_width())
            self.gesture = Drawing(point)
        elif isinstance(gesture, Panning):
            self.viewport = GeometryService.pan_by(
                self.viewport, vx - gesture.last_viewport.x, vy - gesture.last_viewport.y
            )
            self.gesture = Panning(Point(vx, vy))
        return self.gesture

    def pointer_up(self) -> Gesture:
        self.gesture = Idle()
        return self.gesture

from __future__ import annotations

from src.domain.entities.viewport import MAX_ZOOM, MIN_ZOOM, Point, Rect, ViewportTransform


class GeometryService:
    """Pure mappings between viewport, displayed-image and native-image space.

    Viewport space is pointer coordinates relative to the canvas element.
    Image space is the displayed image before zoom and pan are applied:
    image = (viewport - pan) / zoom.
    """

    @staticmethod
    def clamp_zoom(zoom: float) -> float:
        return min(MAX_ZOOM, max(MIN_ZOOM, float(zoom)))

    @staticmethod
    def to_image_space(vx: float, vy: float, transform: ViewportTransform) -> Point:
        return Point(
            (vx - transform.pan_x) / transform.zoom,
            (vy - transform.pan_y) / transform.zoom,
        )

    @staticmethod
    def to_viewport_space(point: Point, transform: ViewportTransform) -> Point:
        return Point(
            point.x * transform.zoom + transform.pan_x,
            point.y * transform.zoom + transform.pan_y,
        )

    # Keep the image point under (vx, vy) fixed while the zoom changes.
    @staticmethod
    def zoom_about(
        transform: ViewportTransform, new_zoom: float, vx: float, vy: float
    ) -> ViewportTransform:
        anchor = GeometryService.to_image_space(vx, vy, transform)
        zoom = GeometryService.clamp_zoom(new_zoom)
        return ViewportTransform(
            zoom=zoom,
            pan_x=vx - anchor.x * zoom,
            pan_y=vy - anchor.y * zoom,
        )

    @staticmethod
    def pan_by(transform: ViewportTransform, dx: float, dy: float) -> ViewportTransform:
        # pan is unbounded
        return ViewportTransform(
            zoom=transform.zoom, pan_x=transform.pan_x + dx, pan_y=transform.pan_y + dy
        )

    @staticmethod
    def display_to_native_point(
        point: Point, displayed_size: tuple[float, float], native_size: tuple[int, int]
    ) -> Point:
        sx, sy = GeometryService._ratio(displayed_size, native_size)
        return Point(round(point.x * sx), round(point.y * sy))

    # Selection rectangle in displayed-image pixels -> native pixels, rounded
    # the way the localized edit request expects.
    @staticmethod
    def display_to_native_rect(
        rect: Rect, displayed_size: tuple[float, float], native_size: tuple[int, int]
    ) -> Rect:
        sx, sy = GeometryService._ratio(displayed_size, native_size)
        return Rect(
            x=round(rect.x * sx),
            y=round(rect.y * sy),
            width=round(rect.width * sx),
            height=round(rect.height * sy),
        )

    @staticmethod
    def _ratio(
        displayed_size: tuple[float, float], native_size: tuple[int, int]
    ) -> tuple[float, float]:
        disp_w, disp_h = displayed_size
        if disp_w <= 0 or disp_h <= 0:
            raise ValueError("displayed size must be positive")
        return native_size[0] / disp_w, native_size[1] / disp_h

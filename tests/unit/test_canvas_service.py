import pytest

from src.domain.services.canvas_service import (
    DEFAULT_BRUSH_SIZE,
    CanvasController,
    Drawing,
    Idle,
    Panning,
)


def test_defaults():
    canvas = CanvasController()
    assert canvas.viewport.zoom == 1.0
    assert canvas.brush_size == DEFAULT_BRUSH_SIZE
    assert isinstance(canvas.gesture, Idle)
    assert not canvas.masking_enabled
    assert canvas.export_mask() is None


def test_drag_without_masking_pans():
    canvas = CanvasController()
    assert isinstance(canvas.pointer_down(10, 10), Panning)
    canvas.pointer_move(25, 5)
    canvas.pointer_move(30, 0)
    assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == (20, -10)
    assert isinstance(canvas.pointer_up(), Idle)
    canvas.pointer_move(100, 100)
    assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == (20, -10)


def test_drag_with_masking_paints_and_does_not_pan():
    canvas = CanvasController()
    canvas.enable_masking(64, 48)
    gesture = canvas.pointer_down(10, 10)
    assert isinstance(gesture, Drawing)
    canvas.pointer_move(30, 10)
    canvas.pointer_up()
    assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == (0, 0)
    assert not canvas.mask_is_blank()
    assert canvas.mask.as_array()[10, 20] == 255


def test_pointer_down_mid_gesture_is_ignored():
    canvas = CanvasController()
    canvas.pointer_down(0, 0)
    assert isinstance(canvas.pointer_down(9, 9), Panning)
    assert canvas.gesture == Panning(canvas.gesture.last_viewport)
    assert (canvas.gesture.last_viewport.x, canvas.gesture.last_viewport.y) == (0, 0)

    canvas.enable_masking(10, 10)
    assert isinstance(canvas.gesture, Idle)  # enabling masking ends the pan
    first = canvas.pointer_down(5, 5)
    assert isinstance(first, Drawing)
    canvas.pointer_down(8, 8)
    assert canvas.gesture == first


def test_strokes_map_through_zoom_and_pan():
    canvas = CanvasController()
    canvas.enable_masking(100, 100)
    canvas.zoom_to(2.0, 0, 0)
    canvas.viewport.pan_x = 10
    canvas.viewport.pan_y = 10
    canvas.set_brush_size(4)
    canvas.pointer_down(110, 110)
    assert isinstance(canvas.gesture, Drawing)
    assert (canvas.gesture.last_point.x, canvas.gesture.last_point.y) == (50, 50)
    assert canvas.stroke_width() == 2
    assert canvas.mask.as_array()[50, 50] == 255


def test_wheel_zooms_about_cursor():
    canvas = CanvasController()
    canvas.wheel(100, 100, -120)
    assert canvas.viewport.zoom == pytest.approx(1.1)
    assert canvas.viewport.pan_x == pytest.approx(100 - 100 * 1.1)
    canvas.wheel(100, 100, 120)
    assert canvas.viewport.zoom == pytest.approx(1.0)
    zoom = canvas.viewport.zoom
    canvas.wheel(100, 100, 0)
    assert canvas.viewport.zoom == zoom


def test_zoom_buttons_clamp():
    canvas = CanvasController()
    for _ in range(30):
        canvas.zoom_in()
    assert canvas.viewport.zoom == 5.0
    for _ in range(60):
        canvas.zoom_out()
    assert canvas.viewport.zoom == pytest.approx(0.1)
    canvas.reset_view()
    assert (canvas.viewport.zoom, canvas.viewport.pan_x, canvas.viewport.pan_y) == (1.0, 0.0, 0.0)


def test_brush_size_is_clamped():
    canvas = CanvasController()
    assert canvas.set_brush_size(0) == 1
    assert canvas.set_brush_size(999) == 200


def test_clear_and_disable_mask():
    canvas = CanvasController()
    canvas.enable_masking(20, 20)
    canvas.pointer_down(5, 5)
    canvas.pointer_up()
    canvas.clear_mask()
    assert canvas.masking_enabled
    assert canvas.mask_is_blank()
    canvas.disable_masking()
    assert not canvas.masking_enabled

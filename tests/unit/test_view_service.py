import io

import pytest
from PIL import Image

from src.domain.services.view_service import CurrentImageView, SnapshotView


def test_preview_is_bounded_and_cached(make_snapshot):
    view = SnapshotView(make_snapshot(400, 200))
    data = view.preview_png(100)
    assert Image.open(io.BytesIO(data)).size == (100, 50)
    assert view.preview_png(100) is data


def test_released_handle_cannot_render(make_snapshot):
    view = SnapshotView(make_snapshot())
    view.release()
    assert view.released
    with pytest.raises(RuntimeError):
        view.preview_png(32)


def test_current_view_swaps_handles(make_snapshot):
    first, second = make_snapshot(name="a.png"), make_snapshot(name="b.png")
    current = CurrentImageView()
    handle_a = current.acquire(first)
    assert current.acquire(first) is handle_a

    handle_b = current.acquire(second)
    assert handle_a.released
    assert not handle_b.released
    assert current.handle is handle_b

    current.acquire(None)
    assert handle_b.released
    assert current.handle is None

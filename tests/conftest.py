import io
import os
import sys
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("GEMINI_DISABLED", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")


def _png_bytes(w=64, h=48, color=(128, 64, 32), mode="RGB") -> bytes:
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    img = Image.new(mode, (w, h), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def make_png():
    """Factory for small solid-color PNGs."""
    return _png_bytes


@pytest.fixture()
def make_snapshot():
    from src.domain.services.processing_service import ProcessingService

    def factory(w=64, h=48, color=(128, 64, 32), name="photo.png"):
        return ProcessingService.decode(_png_bytes(w, h, color), name)

    return factory


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from src.main import create_app

    app = create_app()
    return TestClient(app)


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted in disabled mode; a fresh token means a fresh session
    return {"Authorization": f"Bearer test-{uuid.uuid4().hex}"}

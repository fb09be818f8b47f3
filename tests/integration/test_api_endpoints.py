import io

from PIL import Image

from src.application.session.editor_session import get_registry
from src.domain.entities.batch_item import BatchStatus
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter


def _png(w=64, h=48, color=(128, 64, 32)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


def _upload(client, headers, *files):
    payload = [("files", (name, data, "image/png")) for name, data in files]
    return client.post("/editor/upload", headers=headers, files=payload)


def test_root_and_health_are_public(client):
    assert client.get("/").json()["service"] == "pixelshop-backend"
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_bearer_token(client):
    r = client.get("/editor/state")
    assert r.status_code == 401


def test_empty_state(client, auth_header):
    r = client.get("/editor/state", headers=auth_header)
    assert r.status_code == 200
    data = r.json()
    assert data["mode"] == "empty"
    assert data["cursor"] == -1
    assert data["current"] is None


def test_upload_single_image(client, auth_header):
    r = _upload(client, auth_header, ("photo.png", _png()))
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["mode"] == "single"
    state = data["state"]
    assert state["history_length"] == 1
    assert state["current"]["width"] == 64
    assert state["active_tab"] == "retouch"

    img = client.get("/editor/image/current", headers=auth_header)
    assert img.status_code == 200
    assert img.headers["content-type"] == "image/png"
    assert img.content == _png()

    preview = client.get("/editor/image/current", headers=auth_header, params={"preview": 32})
    assert Image.open(io.BytesIO(preview.content)).size == (32, 24)


def test_upload_rejects_non_image(client, auth_header):
    r = _upload(client, auth_header, ("notes.png", b"hello"))
    assert r.status_code == 400


def test_masked_adjustment_flow(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png()))
    client.put("/editor/tab", headers=auth_header, json={"tab": "adjust"})
    r = client.put(
        "/canvas/masking",
        headers=auth_header,
        json={"enabled": True, "displayed_width": 32, "displayed_height": 24},
    )
    assert r.json()["masking_enabled"] is True

    # blank mask is a validation error
    r = client.post("/editor/adjust", headers=auth_header, json={"prompt": "warmer lighting"})
    assert r.status_code == 400
    assert client.get("/canvas/mask", headers=auth_header).status_code == 404

    client.post("/canvas/pointer/down", headers=auth_header, json={"x": 10, "y": 10})
    r = client.post("/canvas/pointer/move", headers=auth_header, json={"x": 20, "y": 12})
    assert r.json()["gesture"] == "drawing"
    client.post("/canvas/pointer/up", headers=auth_header)
    mask = client.get("/canvas/mask", headers=auth_header)
    assert mask.status_code == 200
    assert Image.open(io.BytesIO(mask.content)).size == (32, 24)

    r = client.post("/editor/adjust", headers=auth_header, json={"prompt": "warmer lighting"})
    assert r.status_code == 200, r.text
    state = r.json()
    assert state["history_length"] == 2
    assert state["can_undo"] is True
    assert state["error"] is None
    assert client.get("/canvas", headers=auth_header).json()["mask_blank"] is True

    prompts = client.get("/prompts/adjust", headers=auth_header).json()
    assert prompts["prompts"] == ["warmer lighting"]


def test_undo_redo_reset(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png()))
    client.post("/editor/filter", headers=auth_header, json={"prompt": "sepia"})
    client.post("/editor/adjust", headers=auth_header, json={"prompt": "brighter"})

    r = client.post("/editor/undo", headers=auth_header)
    assert r.json()["cursor"] == 1
    r = client.post("/editor/redo", headers=auth_header)
    assert r.json()["cursor"] == 2
    r = client.post("/editor/redo", headers=auth_header)
    assert r.json()["cursor"] == 2
    r = client.post("/editor/reset", headers=auth_header)
    assert r.json()["cursor"] == 0
    assert r.json()["can_redo"] is True
    r = client.post("/editor/undo", headers=auth_header)
    assert r.json()["cursor"] == 0

    original = client.get("/editor/image/original", headers=auth_header)
    assert original.content == _png()


def test_edit_requires_selection(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png()))
    r = client.post("/editor/edit", headers=auth_header, json={"prompt": "remove the car"})
    assert r.status_code == 400
    assert client.get("/editor/state", headers=auth_header).json()["error"]

    client.put(
        "/editor/selection",
        headers=auth_header,
        json={"x": 4, "y": 4, "width": 10, "height": 8, "displayed_width": 32, "displayed_height": 24},
    )
    r = client.post("/editor/edit", headers=auth_header, json={"prompt": "remove the car"})
    assert r.status_code == 200, r.text
    assert r.json()["selection"] is None
    assert r.json()["history_length"] == 2


def test_crop_and_expand(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png(100, 100)))
    client.put("/editor/tab", headers=auth_header, json={"tab": "crop"})
    client.put(
        "/editor/selection",
        headers=auth_header,
        json={"x": 0, "y": 0, "width": 25, "height": 25, "displayed_width": 50, "displayed_height": 50},
    )
    r = client.post("/editor/crop", headers=auth_header, json={"device_pixel_ratio": 2})
    assert r.status_code == 200, r.text
    assert (r.json()["current"]["width"], r.json()["current"]["height"]) == (50, 50)

    r = client.post("/editor/expand", headers=auth_header, json={"aspect": "1:1"})
    assert r.status_code == 400
    r = client.post("/editor/expand", headers=auth_header, json={"aspect": "16:9"})
    assert r.status_code == 200, r.text
    assert (r.json()["current"]["width"], r.json()["current"]["height"]) == (89, 50)


def test_canvas_zoom_and_pan(client, auth_header):
    r = client.post("/canvas/wheel", headers=auth_header, json={"x": 100, "y": 100, "delta_y": -1})
    assert abs(r.json()["zoom"] - 1.1) < 1e-9
    client.post("/canvas/reset-view", headers=auth_header)
    client.post("/canvas/pointer/down", headers=auth_header, json={"x": 10, "y": 10})
    r = client.post("/canvas/pointer/move", headers=auth_header, json={"x": 40, "y": 0})
    assert r.json()["gesture"] == "panning"
    assert (r.json()["pan_x"], r.json()["pan_y"]) == (30, -10)
    client.post("/canvas/pointer/up", headers=auth_header)
    r = client.post("/canvas/zoom", headers=auth_header, json={"direction": "in"})
    assert abs(r.json()["zoom"] - 1.2) < 1e-9


def test_batch_run_and_results(client, auth_header):
    r = _upload(client, auth_header, ("a.png", _png()), ("b.png", _png()), ("c.png", _png()))
    assert r.json()["mode"] == "batch"
    assert r.json()["state"]["active_tab"] == "adjust"

    r = client.post("/batch/start", headers=auth_header, json={"prompt": "", "kind": "filter"})
    assert r.status_code == 400

    r = client.post("/batch/start", headers=auth_header, json={"prompt": "vintage", "kind": "filter"})
    assert r.status_code == 202, r.text

    status = client.get("/batch", headers=auth_header).json()
    assert (status["processed"], status["total"]) == (3, 3)
    assert all(item["status"] == "done" for item in status["items"])
    assert status["prompt"] == "vintage"

    first = status["items"][0]
    assert first["result_name"] == "a-edited.png"
    result = client.get(f"/batch/items/{first['id']}/result", headers=auth_header)
    assert result.status_code == 200
    assert "a-edited.png" in result.headers["content-disposition"]

    # nothing in error, so retry is rejected; cancel with no run in progress too
    r = client.post(f"/batch/items/{first['id']}/retry", headers=auth_header)
    assert r.status_code == 409
    assert client.post("/batch/cancel", headers=auth_header).status_code == 409
    assert client.post("/batch/items/missing/retry", headers=auth_header).status_code == 404


def test_retry_while_batch_running_conflicts(client, auth_header, monkeypatch):
    _upload(client, auth_header, ("a.png", _png()), ("b.png", _png()))
    client.post("/batch/start", headers=auth_header, json={"prompt": "vintage", "kind": "filter"})

    token = auth_header["Authorization"].split()[1]
    session = get_registry().get(SupabaseAuthAdapter().validate_token(token).id)
    failed = session.batch.items[1]
    failed.status = BatchStatus.ERROR
    failed.result = None
    failed.error_message = "model refused"

    monkeypatch.setattr(session.batch, "_running", True)
    r = client.post(f"/batch/items/{failed.id}/retry", headers=auth_header)
    assert r.status_code == 409
    assert failed.status is BatchStatus.ERROR

    monkeypatch.undo()
    r = client.post(f"/batch/items/{failed.id}/retry", headers=auth_header)
    assert r.status_code == 202, r.text
    status = client.get("/batch", headers=auth_header).json()
    assert [item["status"] for item in status["items"]] == ["done", "done"]


def test_adjust_in_batch_mode_runs_batch(client, auth_header):
    _upload(client, auth_header, ("a.png", _png()), ("b.png", _png()))
    r = client.post("/editor/adjust", headers=auth_header, json={"prompt": "brighter"})
    assert r.status_code == 202
    status = client.get("/batch", headers=auth_header).json()
    assert status["processed"] == 2
    assert status["kind"] == "adjust"


def test_prompt_history_clear(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png()))
    client.post("/editor/filter", headers=auth_header, json={"prompt": "sepia"})
    client.post("/editor/filter", headers=auth_header, json={"prompt": "noir"})
    client.post("/editor/filter", headers=auth_header, json={"prompt": "SEPIA"})
    assert client.get("/prompts/filter", headers=auth_header).json()["prompts"] == ["SEPIA", "noir"]
    r = client.delete("/prompts/filter", headers=auth_header)
    assert r.json()["prompts"] == []
    assert client.get("/prompts/filter", headers=auth_header).json()["prompts"] == []
    assert client.get("/prompts/unknown", headers=auth_header).status_code == 422


def test_saved_session_lifecycle(client, auth_header):
    assert client.get("/session/saved", headers=auth_header).json()["exists"] is False
    assert client.post("/session/save", headers=auth_header).status_code == 409

    _upload(client, auth_header, ("photo.png", _png()))
    client.post("/editor/filter", headers=auth_header, json={"prompt": "sepia"})
    assert client.post("/session/save", headers=auth_header).status_code == 200
    saved = client.get("/session/saved", headers=auth_header).json()
    assert saved["exists"] is True
    assert saved["image_count"] == 2
    assert saved["cursor_index"] == 1

    client.post("/editor/start-over", headers=auth_header)
    assert client.get("/editor/state", headers=auth_header).json()["mode"] == "empty"
    assert client.get("/session/saved", headers=auth_header).json()["exists"] is False
    assert client.post("/session/restore", headers=auth_header).status_code == 404


def test_restore_saved_session(client, auth_header):
    _upload(client, auth_header, ("photo.png", _png()))
    client.post("/editor/filter", headers=auth_header, json={"prompt": "sepia"})
    client.post("/editor/undo", headers=auth_header)
    client.post("/session/save", headers=auth_header)

    _upload(client, auth_header, ("other.png", _png(10, 10)))
    r = client.post("/session/restore", headers=auth_header)
    assert r.status_code == 200, r.text
    state = r.json()
    assert state["history_length"] == 2
    assert state["cursor"] == 0
    assert state["current"]["name"] == "photo.png"

    assert client.delete("/session", headers=auth_header).status_code == 200
    assert client.get("/session/saved", headers=auth_header).json()["exists"] is False

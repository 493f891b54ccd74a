"""
Tests for the FastAPI split-flow service.
"""

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from app.backend.main import app  # noqa: E402

ROUTE = {
    "rootIdentifier": "0x5e1F00000000000000000000000000000000c0DE",
    "flowTargets": ["0xA11ce00000000000000000000000000000001234", "0xB0b0000000000000000000000000000000005678"],
    "allocations": [70, 30],
    "totalBalance": "1.5",
}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_health(client):
    assert client.get("/").json() == {"service": "splitflow", "status": "ok"}


def test_input_scene_and_pointer_flow(client):
    resp = client.put("/flow/input", json=ROUTE).json()
    assert resp == {"ok": True, "rebuilt": True, "flows": 2, "error": None}
    assert client.put("/flow/input", json=ROUTE).json()["rebuilt"] is False

    scene = client.get("/flow/scene").json()
    bands = [e for e in scene["elements"] if e["kind"] == "band"]
    assert len(bands) == 2
    assert scene["hoveredIndex"] is None

    assert client.post("/flow/pointer", json={"event": "enter", "index": 1}).json()["hoveredIndex"] == 1
    assert client.post("/flow/pointer", json={"event": "leave", "index": 0}).json()["hoveredIndex"] == 1
    assert client.post("/flow/pointer", json={"event": "leave", "index": 1}).json()["hoveredIndex"] is None


def test_pointer_on_unknown_flow(client):
    client.put("/flow/input", json=ROUTE)
    assert client.post("/flow/pointer", json={"event": "enter", "index": 5}).status_code == 404
    assert client.post("/flow/pointer", json={"event": "hover", "index": 0}).status_code == 422


def test_mismatched_input_reports_error(client):
    bad = dict(ROUTE, allocations=[1])
    resp = client.put("/flow/input", json=bad).json()
    assert resp["ok"] is False
    assert resp["flows"] == 0
    assert "same length" in resp["error"]
    assert client.get("/flow/scene").json()["elements"] == []


def test_svg_endpoint(client):
    client.put("/flow/input", json=ROUTE)
    resp = client.get("/flow/svg")
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert resp.text.startswith("<svg")


def test_stream_pushes_scene_on_rebuild(client):
    with client.websocket_connect("/flow/stream") as ws:
        init = ws.receive_json()
        assert init["type"] == "init"
        assert init["scene"]["elements"] == []

        client.put("/flow/input", json=ROUTE)
        msg = ws.receive_json()
        assert msg["type"] == "scene"
        assert len([e for e in msg["scene"]["elements"] if e["kind"] == "endpoint"]) == 2

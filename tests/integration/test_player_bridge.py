"""Integration tests for the player WebSocket bridge and REST API."""

import logging
import time

import pytest
from fastapi.testclient import TestClient

import recorder.di_container as di_container
from recorder.config import reset_config
from recorder.main import app

logger = logging.getLogger(__name__)

TARGET_URL = "https://example.com/live/manifest.mpd"


@pytest.fixture
def client(monkeypatch, tmp_path):
    """Test client backed by a fresh container writing into tmp_path."""
    monkeypatch.setenv("QLOG_TARGET_URL", TARGET_URL)
    monkeypatch.setenv("QLOG_OUTPUT_DIR", str(tmp_path))
    monkeypatch.setenv("QLOG_AUTOPLAY", "true")
    monkeypatch.delenv("QLOG_INTERACTIONS_FILE", raising=False)
    monkeypatch.delenv("QLOG_AUTOSAVE", raising=False)
    monkeypatch.delenv("QLOG_DO_POLLING", raising=False)
    reset_config()
    monkeypatch.setattr(di_container, "_container", None)

    with TestClient(app) as test_client:
        yield test_client

    reset_config()


def _receive_until(websocket, message_type, limit=10):
    """Collect messages until one of ``message_type`` arrives."""
    received = []
    for _ in range(limit):
        message = websocket.receive_json()
        received.append(message)
        if message["type"] == message_type:
            return received
    raise AssertionError(f"No {message_type} message in {received}")


def _setup(websocket, manifest=None, error=None):
    welcome = websocket.receive_json()
    assert welcome["type"] == "welcome"
    assert welcome["url"] == TARGET_URL

    retrieve = websocket.receive_json()
    assert retrieve == {"type": "command", "action": "retrieve_manifest", "url": TARGET_URL}

    answer = {"type": "manifest", "video": {"readyState": 1}}
    if error is not None:
        answer["error"] = error
    else:
        answer["manifest"] = manifest if manifest is not None else {"type": "static"}
    websocket.send_json(answer)
    return welcome["session_id"]


def _wait_disconnected(client, timeout=2.0):
    """Wait for the server to finish tearing down the only session."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        (summary,) = client.get("/api/sessions").json()
        if not summary["connected"]:
            return summary
        time.sleep(0.02)
    raise AssertionError("Session still connected")


def _sync(websocket):
    """Round-trip a ping so all earlier messages have been handled."""
    websocket.send_json({"type": "ping"})
    _receive_until(websocket, "pong")


def test_session_setup_over_websocket(client):
    """Player connects, retrieves the manifest and becomes ready."""
    with client.websocket_connect("/ws/player") as websocket:
        session_id = _setup(websocket)

        messages = _receive_until(websocket, "session_ready")
        actions = [m.get("action") for m in messages if m["type"] == "command"]

        # Remaining commands may trail the ready message
        while len(actions) < 3:
            actions.append(websocket.receive_json()["action"])

        assert actions == ["attach_view", "attach_source", "set_autoplay"]
        logger.info(f"Session {session_id} ready")

        sessions = client.get("/api/sessions").json()
        assert sessions[0]["session_id"] == session_id
        assert sessions[0]["state"] == "active"
        assert sessions[0]["connected"] is True


def test_events_reach_trace(client):
    with client.websocket_connect("/ws/player") as websocket:
        session_id = _setup(websocket)
        _receive_until(websocket, "session_ready")

        websocket.send_json(
            {
                "type": "player_event",
                "event": "fragmentLoadingCompleted",
                "payload": {
                    "mediaType": "video",
                    "request": {
                        "url": "https://example.com/live/seg-1.m4s",
                        "requestStartDate": 1000,
                        "requestEndDate": 1080,
                        "bytesLoaded": 4096,
                    },
                },
            }
        )
        websocket.send_json(
            {"type": "video_event", "event": "pause", "video": {"currentTime": 3.5}}
        )
        websocket.send_json({"type": "player_event", "event": "someFutureEvent", "payload": {}})
        _sync(websocket)

        response = client.get(f"/api/sessions/{session_id}/trace")
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]

        events = response.json()["traces"][0]["events"]
        names = [e["name"] for e in events]
        assert "video:request_update" in names
        assert events[-1]["name"] == "video:player_interaction"
        assert events[-1]["data"] == {"state": "pause", "playhead": {"ms": 3500.0}}

        (summary,) = client.get("/api/sessions").json()
        assert summary["metrics"]["latest_rtt"] == 80
        assert summary["diagnostics"] == {"someFutureEvent": 1}

        metrics = client.get("/api/metrics").json()
        assert metrics["rtt_ms"]["samples"] == 1
        assert metrics["diagnostic_events"] == {"someFutureEvent": 1}


def test_manifest_failure_reported(client):
    with client.websocket_connect("/ws/player") as websocket:
        session_id = _setup(websocket, error="404 Not Found")

        failure = _receive_until(websocket, "setup_failed")[-1]
        assert failure["session_id"] == session_id
        assert "404" in failure["error"]

        status = client.get(f"/api/sessions/{session_id}/status").json()
        assert status[0] == {"key": "status", "value": "failed: 404 Not Found", "color": "red"}

        response = client.get(f"/api/sessions/{session_id}/manifest")
        assert response.status_code == 404


def test_save_and_download_artifacts(client, tmp_path):
    with client.websocket_connect("/ws/player") as websocket:
        session_id = _setup(websocket, manifest={"type": "dynamic"})
        _receive_until(websocket, "session_ready")

        saved = client.post(f"/api/sessions/{session_id}/trace").json()
        assert saved["path"] == str(tmp_path / f"{session_id}_dashjs.qlog")

        manifest = client.get(f"/api/sessions/{session_id}/manifest")
        assert manifest.json() == {"type": "dynamic"}


def test_finished_sessions_are_wiped(client):
    with client.websocket_connect("/ws/player") as websocket:
        session_id = _setup(websocket)
        _receive_until(websocket, "session_ready")

    summary = _wait_disconnected(client)
    assert summary["session_id"] == session_id
    assert summary["state"] == "stopped"

    assert client.delete("/api/sessions").json() == {"removed": 1}
    assert client.get("/api/sessions").json() == []
    assert client.get(f"/api/sessions/{session_id}/trace").status_code == 404


def test_status_and_health(client):
    assert client.get("/health").json()["status"] == "healthy"

    status = client.get("/api/status").json()
    assert status["active_players"] == 0
    assert status["target_url"] == TARGET_URL

"""FastAPI server entrypoint for the qlog recorder.

Main application with the player WebSocket endpoint and a REST API for
status, metrics and trace export.
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from recorder.di_container import cleanup_container, get_container
from recorder.exceptions import ExportError
from recorder.logging_config import setup_logging
from recorder.session import MANIFEST_FILENAME, TRACE_FILENAME, PlayerSession

# Initialize logging
setup_logging()
logger = logging.getLogger(__name__)

# Global startup timestamp
_startup_time = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager (startup/shutdown).

    Args:
        app: FastAPI application instance

    Yields:
        Control during application lifetime
    """
    global _startup_time

    # Startup
    logger.info("=" * 60)
    logger.info("Starting qlog recorder...")
    _startup_time = time.time()

    container = get_container()
    config = container.get_config()

    logger.info(f"Environment: {config.env}")
    logger.info(f"Host: {config.host}:{config.port}")
    logger.info(f"Target: {config.target_url}")
    logger.info(
        f"Autosave: {config.autosave}, autoplay: {config.autoplay}, "
        f"polling: {config.do_polling}"
    )

    # Load the replay sequence up front so a bad file fails at startup
    interactions = container.get_interactions()
    if interactions:
        logger.info(f"Replaying {len(interactions)} interactions per session")

    container.get_player_bridge()

    logger.info("qlog recorder ready!")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Shutting down qlog recorder...")
    await cleanup_container()
    logger.info("qlog recorder stopped")


# Create FastAPI app
app = FastAPI(
    title="qlog recorder API",
    version="1.0.0",
    description="Streaming player instrumentation to qlog traces",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session(session_id: str) -> PlayerSession:
    session = get_container().get_player_bridge().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return session


def _attachment(data: str, filename: str) -> Response:
    return Response(
        content=data,
        media_type="application/json;charset=utf8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# REST API Endpoints


@app.get("/api/status")
async def get_status() -> dict[str, Any]:
    """Get recorder status.

    Returns:
        Dictionary with server status information
    """
    container = get_container()
    bridge = container.get_player_bridge()
    config = container.get_config()

    return {
        "uptime_sec": time.time() - _startup_time,
        "active_players": bridge.get_active_connections(),
        "sessions": len(bridge.sessions),
        "target_url": config.target_url,
        "timestamp": time.time(),
    }


@app.get("/api/metrics")
async def get_metrics() -> dict[str, Any]:
    """Get recorder metrics.

    Returns:
        Dictionary with RTT statistics, event dispositions and process metrics
    """
    return get_container().get_metrics().get_snapshot()


@app.get("/api/sessions")
async def list_sessions() -> list[dict]:
    """List connected and finished sessions."""
    return get_container().get_player_bridge().get_session_stats()


@app.delete("/api/sessions")
async def wipe_sessions() -> dict[str, int]:
    """Wipe all stored traces.

    Finished sessions are forgotten, live sessions keep logging into an
    emptied trace.
    """
    bridge = get_container().get_player_bridge()
    for session in bridge.sessions.values():
        session.wipe_traces()
    removed = bridge.clear_finished_sessions()
    return {"removed": removed}


@app.get("/api/sessions/{session_id}/status")
async def get_session_status(session_id: str) -> list[dict[str, Any]]:
    """Get the status display entries of a session."""
    return _get_session(session_id).status.to_json()


@app.get("/api/sessions/{session_id}/trace")
async def download_trace(session_id: str) -> Response:
    """Download the session trace as a qlog file."""
    session = _get_session(session_id)
    return _attachment(session.sink.export(), TRACE_FILENAME)


@app.post("/api/sessions/{session_id}/trace")
async def save_trace(session_id: str) -> dict[str, str]:
    """Save the session trace to the output directory."""
    session = _get_session(session_id)
    try:
        path = session.download_current_log()
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return {"path": str(path)}


@app.get("/api/sessions/{session_id}/manifest")
async def download_manifest(session_id: str) -> Response:
    """Download the manifest retrieved by the session."""
    session = _get_session(session_id)
    if session.manifest is None:
        raise HTTPException(status_code=404, detail="Manifest not available")
    return _attachment(json.dumps(session.manifest), MANIFEST_FILENAME)


# WebSocket Endpoint


@app.websocket("/ws/player")
async def websocket_player(websocket: WebSocket) -> None:
    """WebSocket endpoint for instrumented players.

    Args:
        websocket: WebSocket connection
    """
    bridge = get_container().get_player_bridge()
    await bridge.handle_connection(websocket)


# Health check endpoint


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy", "service": "qlog-recorder"}

"""qlog recorder - streaming player instrumentation service.

Translates the raw event feed of an instrumented dash.js player into a
time-ordered qlog trace with derived network and playback metrics, and
replays recorded user interactions against the live player.
"""

from recorder.config import RecorderConfig, get_config
from recorder.metrics import RecorderMetrics
from recorder.player_bridge import PlayerBridge
from recorder.remote_player import RemotePlayer
from recorder.replay import InteractionReplayScheduler
from recorder.session import PlayerSession
from recorder.session_state import SessionState
from recorder.status_board import StatusBoard
from recorder.trace_log import TraceLog
from recorder.translator import Disposition, EventTranslator, classify

__version__ = "1.0.0"

__all__ = [
    # Core components
    "EventTranslator",
    "InteractionReplayScheduler",
    "PlayerSession",
    "SessionState",
    "Disposition",
    "classify",
    # Collaborators
    "TraceLog",
    "StatusBoard",
    "RemotePlayer",
    "PlayerBridge",
    # Configuration
    "RecorderConfig",
    "get_config",
    # Metrics
    "RecorderMetrics",
]

"""In-memory player collaborators for unit and integration tests."""

from typing import Any, Callable, Optional

from recorder.exceptions import ManifestRetrievalError
from recorder.interfaces.player import (
    IMediaPlayer,
    IVideoElement,
    PlaybackSnapshot,
    PlayerEventListener,
    VideoEventListener,
)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class FakeVideo(IVideoElement):
    """Media element with directly settable properties."""

    def __init__(self) -> None:
        self.listeners: list[VideoEventListener] = []
        self._current_time: Optional[float] = 0.0
        self._volume: Optional[float] = 1.0
        self._playback_rate: Optional[float] = 1.0
        self._ready_state: Optional[int] = 0
        self._decoded_byte_count: Optional[int] = None

    def add_listener(self, listener: VideoEventListener) -> None:
        self.listeners.append(listener)

    def emit(self, event_name: str, message: Optional[str] = None) -> list:
        return [listener(event_name, message) for listener in self.listeners]

    @property
    def current_time(self) -> Optional[float]:
        return self._current_time

    @current_time.setter
    def current_time(self, value: Optional[float]) -> None:
        self._current_time = value

    @property
    def volume(self) -> Optional[float]:
        return self._volume

    @volume.setter
    def volume(self, value: Optional[float]) -> None:
        self._volume = value

    @property
    def playback_rate(self) -> Optional[float]:
        return self._playback_rate

    @playback_rate.setter
    def playback_rate(self, value: Optional[float]) -> None:
        self._playback_rate = value

    @property
    def ready_state(self) -> Optional[int]:
        return self._ready_state

    @ready_state.setter
    def ready_state(self, value: Optional[int]) -> None:
        self._ready_state = value

    @property
    def decoded_byte_count(self) -> Optional[int]:
        return self._decoded_byte_count

    @decoded_byte_count.setter
    def decoded_byte_count(self, value: Optional[int]) -> None:
        self._decoded_byte_count = value


class FakePlayer(IMediaPlayer):
    """Player that records control calls and replays events on demand."""

    def __init__(
        self,
        manifest: Any = None,
        manifest_error: Optional[str] = None,
    ):
        self.manifest = manifest if manifest is not None else {"type": "static"}
        self.manifest_error = manifest_error
        self.return_null_manifest = False
        # Runs while the manifest is "in flight"
        self.before_manifest: Optional[Callable[[], Any]] = None
        self.listeners: list[PlayerEventListener] = []
        self.calls: list[tuple] = []
        self.snapshot: Optional[PlaybackSnapshot] = None

    def emit(self, event_name: str, payload: Any = None) -> list:
        return [listener(event_name, payload or {}) for listener in self.listeners]

    def subscribe(self, listener: PlayerEventListener) -> None:
        self.listeners.append(listener)

    def play(self) -> None:
        self.calls.append(("play",))

    def pause(self) -> None:
        self.calls.append(("pause",))

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))

    def set_playback_rate(self, rate: float) -> None:
        self.calls.append(("set_playback_rate", rate))

    def seek(self, seconds: float) -> None:
        self.calls.append(("seek", seconds))

    def attach_view(self) -> None:
        self.calls.append(("attach_view",))

    def attach_source(self, manifest: Any) -> None:
        self.calls.append(("attach_source", manifest))

    def set_autoplay(self, autoplay: bool) -> None:
        self.calls.append(("set_autoplay", autoplay))

    async def retrieve_manifest(self, url: str) -> Any:
        self.calls.append(("retrieve_manifest", url))
        if self.before_manifest is not None:
            self.before_manifest()
        if self.manifest_error is not None:
            raise ManifestRetrievalError(self.manifest_error)
        if self.return_null_manifest:
            return None
        return self.manifest

    def get_playback_snapshot(self) -> Optional[PlaybackSnapshot]:
        return self.snapshot

    def control_calls(self) -> list[tuple]:
        """Calls made by interaction replay (play/pause/volume/rate/seek)."""
        names = {"play", "pause", "set_volume", "set_playback_rate", "seek"}
        return [c for c in self.calls if c[0] in names]

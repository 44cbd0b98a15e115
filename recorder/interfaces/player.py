"""Player and media element interface definitions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

# (event name, payload)
PlayerEventListener = Callable[[str, dict[str, Any]], None]
# (event name, error message or None)
VideoEventListener = Callable[[str, Optional[str]], None]


@dataclass
class PlaybackSnapshot:
    """Point-in-time playback statistics read by the stats poller.

    Attributes:
        buffer_level_video: Video buffer level in seconds
        buffer_level_audio: Audio buffer level in seconds
        frame_rate: Frame rate of the current video representation
        bitrate_kbps: Bandwidth of the current video representation, None
            before the first representation switch
    """

    buffer_level_video: Optional[float] = None
    buffer_level_audio: Optional[float] = None
    frame_rate: Optional[float] = None
    bitrate_kbps: Optional[float] = None


class IMediaPlayer(ABC):
    """Control surface and raw event feed of the streaming player."""

    @abstractmethod
    def subscribe(self, listener: PlayerEventListener) -> None:
        """Register a listener for every raw player event.

        Args:
            listener: Called with the event name and its payload
        """
        pass

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set the volume (0.0-1.0)."""
        pass

    @abstractmethod
    def set_playback_rate(self, rate: float) -> None:
        pass

    @abstractmethod
    def seek(self, seconds: float) -> None:
        """Seek to a media time.

        Args:
            seconds: Target playhead in seconds
        """
        pass

    @abstractmethod
    def attach_view(self) -> None:
        """Attach the player to its media element."""
        pass

    @abstractmethod
    def attach_source(self, manifest: Any) -> None:
        pass

    @abstractmethod
    def set_autoplay(self, autoplay: bool) -> None:
        pass

    @abstractmethod
    async def retrieve_manifest(self, url: str) -> Any:
        """Retrieve and parse the manifest at ``url``.

        Returns:
            Parsed manifest, or None if the player produced none

        Raises:
            ManifestRetrievalError: If the player reports a retrieval error
        """
        pass

    @abstractmethod
    def get_playback_snapshot(self) -> Optional[PlaybackSnapshot]:
        """Return current playback statistics, None without an active stream."""
        pass


class IVideoElement(ABC):
    """Read-only view of the media element plus its native events."""

    @abstractmethod
    def add_listener(self, listener: VideoEventListener) -> None:
        """Register a listener for native play/pause/resize/error events."""
        pass

    @property
    @abstractmethod
    def current_time(self) -> Optional[float]:
        """Playhead position in seconds."""
        pass

    @property
    @abstractmethod
    def volume(self) -> Optional[float]:
        pass

    @property
    @abstractmethod
    def playback_rate(self) -> Optional[float]:
        pass

    @property
    @abstractmethod
    def ready_state(self) -> Optional[int]:
        """HTMLMediaElement readyState (0-4)."""
        pass

    @property
    @abstractmethod
    def decoded_byte_count(self) -> Optional[int]:
        """Decoded video byte count, None where the browser does not expose it."""
        pass

"""Periodic playback pollers.

Two independent fixed-interval loops read player state and report it to the
status display (and, for the stats poller, the trace metrics). Their bodies
are idempotent reads; stopping a session cancels both.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from telemetry.schema import MetricSnapshot
from recorder.interfaces.player import IMediaPlayer, IVideoElement
from recorder.interfaces.sink import IStatusDisplay, ITraceSink

logger = logging.getLogger(__name__)

EVENT_POLLER_INTERVAL_MS = 100
BITRATE_POLLER_INTERVAL_MS = 5000


class PeriodicPoller(ABC):
    """Runs ``poll_once`` every ``interval_ms`` on an asyncio task."""

    name = "poller"

    def __init__(self, interval_ms: int, immediate: bool = False):
        """Initialize poller.

        Args:
            interval_ms: Delay between ticks in milliseconds
            immediate: Run the first tick at start instead of after one interval
        """
        self.interval_ms = interval_ms
        self.immediate = immediate
        self._task: Optional[asyncio.Task] = None

    @abstractmethod
    def poll_once(self) -> None:
        """Read state once and report it."""
        pass

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling loop on the running event loop."""
        if self.is_running():
            logger.warning(f"{self.name} already running")
            return
        self._task = asyncio.create_task(self._loop())
        logger.debug(f"{self.name} started ({self.interval_ms}ms)")

    def stop(self) -> Optional[asyncio.Task]:
        """Cancel the polling loop.

        Returns:
            The cancelled task (await it to wait for the loop to exit)
        """
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"{self.name} stopped")
        return task

    async def _loop(self) -> None:
        try:
            if self.immediate:
                self._tick()
            while True:
                await asyncio.sleep(self.interval_ms / 1000.0)
                self._tick()
        except asyncio.CancelledError:
            pass

    def _tick(self) -> None:
        try:
            self.poll_once()
        except Exception as e:
            logger.error(f"Error in {self.name}: {e}", exc_info=True)


def _same_bitrate(a: Optional[float], b: Optional[float]) -> bool:
    if a is None or b is None:
        return a is b
    if math.isnan(a) and math.isnan(b):
        return True
    return a == b


class PlaybackStatsPoller(PeriodicPoller):
    """Reports buffer levels, frame rate and bitrate of the active stream."""

    name = "playback stats poller"

    def __init__(
        self,
        player: IMediaPlayer,
        sink: ITraceSink,
        status: IStatusDisplay,
        interval_ms: int = EVENT_POLLER_INTERVAL_MS,
    ):
        super().__init__(interval_ms)
        self.player = player
        self.sink = sink
        self.status = status
        self.last_bitrate: Optional[float] = None

    def poll_once(self) -> None:
        snapshot = self.player.get_playback_snapshot()
        if snapshot is None:
            return

        self.status.set_status("buffer level (video)", f"{snapshot.buffer_level_video} s", "black")
        self.status.set_status("buffer level (audio)", f"{snapshot.buffer_level_audio} s", "black")
        self.status.set_status("framerate", f"{snapshot.frame_rate or 0} fps", "black")
        self.status.set_status("bitrate", f"{snapshot.bitrate_kbps} Kbps", "black")

        bitrate = snapshot.bitrate_kbps
        if bitrate is not None and not _same_bitrate(self.last_bitrate, bitrate):
            self.sink.update_metrics(MetricSnapshot(bitrate=bitrate))
            self.last_bitrate = bitrate


class DecodedBitratePoller(PeriodicPoller):
    """Derives the video bitrate from the decoded byte counter."""

    name = "decoded bitrate poller"

    def __init__(
        self,
        video: IVideoElement,
        status: IStatusDisplay,
        interval_ms: int = BITRATE_POLLER_INTERVAL_MS,
    ):
        # first log point is at start
        super().__init__(interval_ms, immediate=True)
        self.video = video
        self.status = status
        self.last_decoded_byte_count = 0
        self.last_bitrate_kbps: Optional[float] = None

    def poll_once(self) -> None:
        decoded = self.video.decoded_byte_count
        if decoded is None:
            return

        interval_s = self.interval_ms / 1000.0
        kbps = ((decoded - self.last_decoded_byte_count) / 1000 * 8) / interval_s
        self.status.set_status("bitrate (webkit)", f"{round(kbps)} Kbps", "black")
        self.last_decoded_byte_count = decoded
        self.last_bitrate_kbps = kbps

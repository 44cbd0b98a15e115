"""Replay of recorded user interactions against a live player.

Each interaction fires at its recorded absolute trace offset. The delay for
the next interaction is computed when it is armed, from the trace clock the
events are timestamped with, so a stall in playback does not shift later
interactions.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from telemetry.interactions import RecordedInteraction
from telemetry.schema import InteractionState
from recorder.interfaces.player import IMediaPlayer

logger = logging.getLogger(__name__)


@dataclass
class ReplayCursor:
    """Position in the interaction sequence.

    Attributes:
        index: Next interaction to fire, 0 <= index <= len(sequence)
        pending: Handle of the armed timer, None when idle
    """

    index: int = 0
    pending: Optional[asyncio.TimerHandle] = None


class InteractionReplayScheduler:
    """Fires recorded interactions one at a time at their trace offsets."""

    def __init__(
        self,
        clock: Callable[[], float],
        player: IMediaPlayer,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize replay scheduler.

        Args:
            clock: Current trace clock offset in milliseconds
            player: Player control surface the interactions are sent to
            loop: Event loop used for timers (defaults to the running loop)
        """
        self.clock = clock
        self.player = player
        self._loop = loop
        self.sequence: tuple[RecordedInteraction, ...] = ()
        self.cursor = ReplayCursor()
        self.fired: list[RecordedInteraction] = []
        self._cancelled = False

    @property
    def is_idle(self) -> bool:
        """True when no timer is armed."""
        return self.cursor.pending is None

    def start(self, sequence: Sequence[RecordedInteraction]) -> None:
        """Start replaying ``sequence`` from its first interaction.

        Args:
            sequence: Interactions ordered by trace offset
        """
        self.cancel()
        self.sequence = tuple(sequence)
        self.cursor = ReplayCursor()
        self.fired = []
        self._cancelled = False

        if not self.sequence:
            logger.info("No interactions to replay")
            return

        logger.info(f"Replaying {len(self.sequence)} interactions")
        self._arm()

    def cancel(self) -> None:
        """Cancel the armed interaction, if any. Replay cannot be resumed."""
        self._cancelled = True
        if self.cursor.pending is not None:
            self.cursor.pending.cancel()
            self.cursor.pending = None
            logger.info(
                f"Replay cancelled at interaction {self.cursor.index}/{len(self.sequence)}"
            )

    def _arm(self) -> None:
        interaction = self.sequence[self.cursor.index]
        delay_ms = interaction.time - self.clock()
        loop = self._loop or asyncio.get_running_loop()
        # Already-late interactions fire on the next loop iteration
        self.cursor.pending = loop.call_later(max(delay_ms, 0.0) / 1000.0, self._fire)
        logger.debug(
            f"Armed interaction {self.cursor.index} ({interaction.kind}) in {delay_ms:.1f}ms"
        )

    def _fire(self) -> None:
        self.cursor.pending = None
        if self._cancelled or self.cursor.index >= len(self.sequence):
            return

        interaction = self.sequence[self.cursor.index]
        self.simulate(interaction)
        self.fired.append(interaction)

        self.cursor.index += 1
        if self.cursor.index < len(self.sequence):
            self._arm()
        else:
            logger.info("Interaction replay finished")

    def simulate(self, interaction: RecordedInteraction) -> None:
        """Send one interaction to the player."""
        kind = interaction.kind
        if kind is InteractionState.PLAY:
            self.player.play()
        elif kind is InteractionState.PAUSE:
            self.player.pause()
        elif kind is InteractionState.VOLUME:
            self.player.set_volume(interaction.volume)
        elif kind is InteractionState.PLAYBACK_RATE:
            self.player.set_playback_rate(interaction.playback_rate)
        elif kind is InteractionState.SEEK:
            playhead_ms = interaction.playhead_ms
            if playhead_ms is None:
                logger.warning(f"Seek interaction without playhead: {interaction}")
                return
            self.player.seek(playhead_ms / 1000)
        else:
            logger.warning(f"Unable to simulate interaction of type {kind}: {interaction}")

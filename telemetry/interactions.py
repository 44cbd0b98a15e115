"""Recorded user interactions used for replay.

Interactions are read back from a previously exported qlog trace: every
player-interaction event becomes one ``RecordedInteraction``.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Union

from telemetry.schema import EventCategory, InteractionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedInteraction:
    """One user interaction at an absolute trace offset.

    Attributes:
        time: Trace clock offset in milliseconds
        kind: Interaction type, or the raw string for unknown types
        payload: Remaining event data (volume, playback_rate, playhead ...)
    """

    time: float
    kind: Union[InteractionState, str]
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_qlog_event(cls, event: dict[str, Any]) -> "RecordedInteraction":
        """Build an interaction from a qlog player-interaction event.

        Args:
            event: Dictionary with ``time`` and ``data.state``

        Raises:
            ValueError: If the event has no time or no interaction state
        """
        data = event.get("data") or {}
        state = data.get("state")
        if event.get("time") is None or state is None:
            raise ValueError(f"Not a player interaction event: {event!r}")

        try:
            kind: Union[InteractionState, str] = InteractionState(state)
        except ValueError:
            kind = str(state)

        payload = {k: v for k, v in data.items() if k != "state"}
        return cls(time=float(event["time"]), kind=kind, payload=payload)

    @property
    def volume(self) -> Any:
        return self.payload.get("volume")

    @property
    def playback_rate(self) -> Any:
        return self.payload.get("playback_rate")

    @property
    def playhead_ms(self) -> Any:
        playhead = self.payload.get("playhead")
        if isinstance(playhead, dict):
            return playhead.get("ms")
        return playhead


def _iter_events(document: Any) -> Iterable[dict[str, Any]]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        if "traces" in document:
            events: list[dict[str, Any]] = []
            for trace in document["traces"]:
                events.extend(trace.get("events", []))
            return events
        if "events" in document:
            return document["events"]
    raise ValueError("Expected a qlog document or a list of events")


def load_interactions(
    source: Union[str, Path, dict[str, Any], list[dict[str, Any]]],
) -> tuple[RecordedInteraction, ...]:
    """Load the ordered interaction sequence from a qlog trace.

    Args:
        source: Path to a qlog JSON file, a parsed qlog document or a
            plain list of events

    Returns:
        Interactions sorted by trace offset

    Raises:
        ValueError: If the document has no recognisable event list
    """
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as f:
            document = json.load(f)
    else:
        document = source

    interactions = []
    for event in _iter_events(document):
        name = event.get("name")
        if name is not None and name != EventCategory.PLAYER_INTERACTION.value:
            continue
        try:
            interactions.append(RecordedInteraction.from_qlog_event(event))
        except ValueError:
            logger.debug(f"Skipping non-interaction event: {event!r}")

    interactions.sort(key=lambda i: i.time)
    logger.info(f"Loaded {len(interactions)} recorded interactions")
    return tuple(interactions)

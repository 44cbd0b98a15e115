"""Dependency injection container for recorder components.

Provides centralized management of service instances with proper lifecycle
and dependency resolution.
"""

import logging
from typing import Any, Optional

from telemetry.interactions import RecordedInteraction, load_interactions
from recorder.artifacts import ArtifactWriter
from recorder.config import RecorderConfig, get_config
from recorder.exceptions import ConfigurationError
from recorder.metrics import RecorderMetrics
from recorder.player_bridge import PlayerBridge
from recorder.remote_player import RemotePlayer
from recorder.session import PlayerSession

logger = logging.getLogger(__name__)


class DIContainer:
    """Dependency injection container for recorder components."""

    def __init__(self, config: Optional[RecorderConfig] = None) -> None:
        """Initialize DI container.

        Args:
            config: Configuration to use instead of the global singleton
        """
        self._config = config or get_config()
        self._instances: dict[str, Any] = {}

        logger.info("DI container initialized")

    def get_config(self) -> RecorderConfig:
        """Get configuration instance."""
        return self._config

    def get_metrics(self) -> RecorderMetrics:
        """Get or create metrics collector instance."""
        if "metrics" not in self._instances:
            self._instances["metrics"] = RecorderMetrics()
        return self._instances["metrics"]

    def get_artifact_writer(self) -> ArtifactWriter:
        """Get or create artifact writer instance."""
        if "artifact_writer" not in self._instances:
            self._instances["artifact_writer"] = ArtifactWriter(self._config.output_dir)
        return self._instances["artifact_writer"]

    def get_interactions(self) -> tuple[RecordedInteraction, ...]:
        """Get the configured replay sequence (empty if none is configured).

        Raises:
            ConfigurationError: If the interactions file cannot be loaded
        """
        if "interactions" not in self._instances:
            path = self._config.interactions_file
            if path is None:
                interactions: tuple[RecordedInteraction, ...] = ()
            else:
                try:
                    interactions = load_interactions(path)
                except (OSError, ValueError) as e:
                    raise ConfigurationError(
                        f"Cannot load interactions from {path}: {e}"
                    ) from e
            self._instances["interactions"] = interactions
        return self._instances["interactions"]

    def create_session(self, session_id: str, player: RemotePlayer) -> PlayerSession:
        """Create a session for a newly connected player."""
        config = self._config
        return PlayerSession(
            session_id=session_id,
            player=player,
            video=player,
            url=config.target_url,
            writer=self.get_artifact_writer(),
            autosave=config.autosave,
            autoplay=config.autoplay,
            do_polling=config.do_polling,
            interactions=self.get_interactions(),
            metrics=self.get_metrics(),
            event_poll_interval_ms=config.event_poll_interval_ms,
            bitrate_poll_interval_ms=config.bitrate_poll_interval_ms,
        )

    def get_player_bridge(self) -> PlayerBridge:
        """Get or create player bridge instance."""
        if "player_bridge" not in self._instances:
            self._instances["player_bridge"] = PlayerBridge(self.create_session)
        return self._instances["player_bridge"]

    async def cleanup(self) -> None:
        """Clean up all managed instances."""
        logger.info("Cleaning up DI container")

        # Stop any session still logging
        if "player_bridge" in self._instances:
            for session in self._instances["player_bridge"].sessions.values():
                try:
                    await session.shutdown()
                except Exception as e:
                    logger.error(f"Error stopping session {session.session_id}: {e}")

        self._instances.clear()
        logger.info("DI container cleaned up")


# Global container instance
_container: Optional[DIContainer] = None


def get_container() -> DIContainer:
    """Get the global DI container instance.

    Returns:
        DIContainer singleton
    """
    global _container
    if _container is None:
        _container = DIContainer()
    return _container


async def cleanup_container() -> None:
    """Clean up the global DI container."""
    global _container
    if _container is not None:
        await _container.cleanup()
        _container = None

"""WebSocket bridge between instrumented browser players and sessions.

Each connection gets its own RemotePlayer and PlayerSession. Inbound
messages feed the session's translator; player commands (setup, replayed
interactions) flow back over the same socket.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from recorder.exceptions import SessionSetupError
from recorder.remote_player import RemotePlayer
from recorder.session import PlayerSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, RemotePlayer], PlayerSession]


class PlayerConnection:
    """Represents a connected browser player."""

    def __init__(self, session_id: str, websocket: WebSocket, player: RemotePlayer):
        """Initialize player connection.

        Args:
            session_id: Session identifier
            websocket: WebSocket connection instance
            player: Remote player mirror fed by this connection
        """
        self.session_id = session_id
        self.websocket = websocket
        self.player = player
        self.connected_at = time.time()
        self.messages_received = 0
        self.commands_sent = 0

    async def send_command(self, command: dict) -> bool:
        """Send a player command to the browser.

        Args:
            command: Command message

        Returns:
            True if sent successfully, False on error
        """
        try:
            await self.websocket.send_json(command)
            self.commands_sent += 1
            return True
        except Exception as e:
            logger.error(
                f"Error sending command to {self.session_id}: {e}",
                extra={"session_id": self.session_id},
            )
            return False

    async def send_control_message(self, message: dict) -> bool:
        """Send control message to the browser.

        Args:
            message: Control message dictionary

        Returns:
            True if sent successfully, False on error
        """
        try:
            await self.websocket.send_json(message)
            return True
        except Exception as e:
            logger.error(
                f"Error sending control message to {self.session_id}: {e}",
                extra={"session_id": self.session_id},
            )
            return False

    def get_connection_duration(self) -> float:
        """Get connection duration in seconds.

        Returns:
            Duration in seconds
        """
        return time.time() - self.connected_at


class PlayerBridge:
    """WebSocket endpoint handler for instrumented players."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize player bridge.

        Args:
            session_factory: Builds a session for a new connection
        """
        self.session_factory = session_factory
        self.connections: Dict[str, PlayerConnection] = {}
        self.sessions: Dict[str, PlayerSession] = {}
        self.next_session_id = 0

        logger.info("Player bridge initialized")

    def _generate_session_id(self) -> str:
        """Generate unique session ID.

        Returns:
            Session ID string
        """
        session_id = f"session_{self.next_session_id}"
        self.next_session_id += 1
        return session_id

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Handle WebSocket connection lifecycle.

        Args:
            websocket: WebSocket connection instance
        """
        await websocket.accept()

        session_id = self._generate_session_id()
        player = RemotePlayer()
        session = self.session_factory(session_id, player)
        connection = PlayerConnection(session_id, websocket, player)
        self.connections[session_id] = connection
        self.sessions[session_id] = session

        logger.info(
            f"Player connected: {session_id} (active: {len(self.connections)})",
            extra={"session_id": session_id},
        )

        setup_task: Optional[asyncio.Task] = None
        try:
            await connection.send_control_message(
                {
                    "type": "welcome",
                    "session_id": session_id,
                    "url": session.url,
                    "message": "Connected to qlog recorder",
                }
            )

            command_task = asyncio.create_task(self._pump_commands(connection))
            message_task = asyncio.create_task(self._handle_player_messages(connection))
            setup_task = asyncio.create_task(self._run_setup(connection, session))

            done, pending = await asyncio.wait(
                [command_task, message_task], return_when=asyncio.FIRST_COMPLETED
            )

            for task in pending:
                task.cancel()

        except WebSocketDisconnect:
            logger.info(
                f"Player {session_id} disconnected normally",
                extra={"session_id": session_id},
            )
        except Exception as e:
            logger.error(
                f"Error handling player {session_id}: {e}",
                extra={"session_id": session_id},
            )
        finally:
            player.cancel_pending()
            if setup_task is not None and not setup_task.done():
                setup_task.cancel()
            await session.shutdown()

            if session_id in self.connections:
                del self.connections[session_id]

            logger.info(
                f"Player {session_id} removed "
                f"(duration: {connection.get_connection_duration():.1f}s, "
                f"messages: {connection.messages_received}, "
                f"events: {len(session.sink.events)}, "
                f"remaining players: {len(self.connections)})",
                extra={"session_id": session_id},
            )

    async def _run_setup(self, connection: PlayerConnection, session: PlayerSession) -> None:
        """Run session setup and report its outcome to the browser."""
        try:
            await session.setup()
        except SessionSetupError as e:
            await connection.send_control_message(
                {"type": "setup_failed", "session_id": session.session_id, "error": str(e)}
            )
            return
        except Exception as e:
            logger.error(
                f"Unexpected error setting up {session.session_id}: {e}",
                exc_info=True,
                extra={"session_id": session.session_id},
            )
            return

        await connection.send_control_message(
            {"type": "session_ready", "session_id": session.session_id}
        )

    async def _pump_commands(self, connection: PlayerConnection) -> None:
        """Forward queued player commands to the browser.

        Args:
            connection: Player connection
        """
        while True:
            command = await connection.player.outbox.get()
            success = await connection.send_command(command)
            if not success:
                logger.warning(
                    f"Failed to send command to {connection.session_id}, closing"
                )
                break

    async def _handle_player_messages(self, connection: PlayerConnection) -> None:
        """Handle messages from the browser.

        Args:
            connection: Player connection
        """
        while True:
            try:
                message = await connection.websocket.receive_json()
                connection.messages_received += 1

                if not isinstance(message, dict):
                    logger.warning(f"Non-object message from {connection.session_id}")
                    continue

                if message.get("type") == "ping":
                    await connection.send_control_message(
                        {"type": "pong", "timestamp": time.time()}
                    )
                elif not connection.player.handle_message(message):
                    logger.warning(
                        f"Unknown message type from {connection.session_id}: "
                        f"{message.get('type')}"
                    )

            except WebSocketDisconnect:
                break
            except Exception as e:
                logger.error(
                    f"Error receiving message from {connection.session_id}: {e}"
                )
                break

    def get_session(self, session_id: str) -> Optional[PlayerSession]:
        return self.sessions.get(session_id)

    def get_active_connections(self) -> int:
        """Get number of connected players.

        Returns:
            Number of connected players
        """
        return len(self.connections)

    def get_session_stats(self) -> list[dict]:
        """Get summaries of all known sessions, connected or finished.

        Returns:
            List of session stat dictionaries
        """
        stats = []
        for session_id, session in self.sessions.items():
            entry = session.describe()
            connection = self.connections.get(session_id)
            entry["connected"] = connection is not None
            if connection is not None:
                entry["duration_sec"] = connection.get_connection_duration()
                entry["messages_received"] = connection.messages_received
                entry["commands_sent"] = connection.commands_sent
            stats.append(entry)
        return stats

    def clear_finished_sessions(self) -> int:
        """Forget sessions whose player has disconnected.

        Returns:
            Number of sessions removed
        """
        finished = [sid for sid in self.sessions if sid not in self.connections]
        for sid in finished:
            del self.sessions[sid]
        logger.info(f"Cleared {len(finished)} finished sessions")
        return len(finished)

"""Player session lifecycle states."""

from enum import Enum


class SessionState(str, Enum):
    """Lifecycle of a player session.

    uninitialized -> initializing -> active -> stopped, with failed reached
    from initializing when the manifest cannot be retrieved. A stopped or
    failed session is never reactivated.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def is_recording(self) -> bool:
        """True while raw events should be translated into the trace."""
        return self in (SessionState.INITIALIZING, SessionState.ACTIVE)

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.STOPPED, SessionState.FAILED)

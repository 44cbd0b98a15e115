"""Key/value status display for a player session."""

from typing import Any

from recorder.interfaces.sink import IStatusDisplay


class StatusBoard(IStatusDisplay):
    """Last-write-wins status entries, in first-insertion order."""

    def __init__(self) -> None:
        self.items: dict[str, tuple[str, str]] = {}

    def set_status(self, key: str, value: str, color: str) -> None:
        """Insert or replace the status entry for ``key``.

        Args:
            key: Status label
            value: Display value
            color: CSS color name for the value
        """
        self.items[key] = (value, color)

    def get(self, key: str) -> str | None:
        entry = self.items.get(key)
        return entry[0] if entry else None

    def to_json(self) -> list[dict[str, Any]]:
        return [
            {"key": key, "value": value, "color": color}
            for key, (value, color) in self.items.items()
        ]

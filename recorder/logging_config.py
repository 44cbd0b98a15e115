"""Structured logging configuration for the qlog recorder.

Log lines are key=value pairs. Records may carry session context through
``extra``: the session id, the raw player event kind being translated and
sampled fragment RTTs.
"""

import logging
import sys
from typing import Any, Optional

from recorder.config import RecorderConfig, get_config

# ``extra`` keys copied onto the log line when present
CONTEXT_FIELDS = ("session_id", "event_kind", "rtt_ms")

# Loggers owned by this project
PROJECT_LOGGERS = ("recorder", "telemetry")


def _render(value: Any) -> str:
    text = str(value)
    if not text or " " in text or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Key=value log formatter with recorder session context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as key=value pairs.

        Args:
            record: Log record to format

        Returns:
            Formatted log line; a traceback, if any, follows on the next lines
        """
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value
        fields["message"] = record.getMessage()

        line = " ".join(f"{k}={_render(v)}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(config: Optional[RecorderConfig] = None) -> None:
    """Install the structured console handler on the root logger.

    Args:
        config: Configuration providing the log level (global one by default)
    """
    config = config or get_config()
    level = getattr(logging, config.log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(StructuredFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    root_logger.addHandler(console_handler)

    # Access logs for the REST polling are noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    for name in PROJECT_LOGGERS:
        logging.getLogger(name).setLevel(level)

"""Unit tests for structured log formatting."""

import logging

from recorder.logging_config import StructuredFormatter


def _record(message, **extra):
    record = logging.LogRecord(
        name="recorder.translator",
        level=logging.WARNING,
        pathname=__file__,
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_key_value_line_with_context():
    line = StructuredFormatter().format(
        _record("Unmapped player event", session_id="session_3", event_kind="log")
    )

    assert "level=WARNING" in line
    assert "logger=recorder.translator" in line
    assert "session_id=session_3" in line
    assert "event_kind=log" in line
    assert line.endswith('message="Unmapped player event"')


def test_absent_context_is_omitted():
    line = StructuredFormatter().format(_record("ready"))

    assert "session_id" not in line
    assert "rtt_ms" not in line
    assert line.endswith("message=ready")


def test_exception_follows_line():
    try:
        raise RuntimeError("sink broke")
    except RuntimeError:
        import sys

        record = _record("Error translating")
        record.exc_info = sys.exc_info()

    line = StructuredFormatter().format(record)

    first, rest = line.split("\n", 1)
    assert first.endswith('message="Error translating"')
    assert "RuntimeError: sink broke" in rest

"""Unit tests for recorder configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from recorder.config import RecorderConfig, get_config, reset_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and .env file."""
    for name in (
        "QLOG_ENV",
        "QLOG_TARGET_URL",
        "QLOG_AUTOSAVE",
        "QLOG_AUTOPLAY",
        "QLOG_DO_POLLING",
        "QLOG_INTERACTIONS_FILE",
        "QLOG_OUTPUT_DIR",
        "QLOG_EVENT_POLL_INTERVAL_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


def test_defaults():
    config = RecorderConfig()

    assert config.target_url.endswith("manifest.mpd")
    assert config.autosave is False
    assert config.autoplay is False
    assert config.do_polling is False
    assert config.interactions_file is None
    assert config.event_poll_interval_ms == 100
    assert config.bitrate_poll_interval_ms == 5000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("QLOG_TARGET_URL", "http://localhost:8080/live.mpd")
    monkeypatch.setenv("QLOG_AUTOSAVE", "true")
    monkeypatch.setenv("QLOG_DO_POLLING", "1")
    monkeypatch.setenv("QLOG_INTERACTIONS_FILE", "runs/previous.qlog")
    monkeypatch.setenv("QLOG_OUTPUT_DIR", "/tmp/qlogs")

    config = RecorderConfig()

    assert config.target_url == "http://localhost:8080/live.mpd"
    assert config.autosave is True
    assert config.do_polling is True
    assert config.interactions_file == Path("runs/previous.qlog")
    assert config.output_dir == Path("/tmp/qlogs")


def test_rejects_non_http_target(monkeypatch):
    monkeypatch.setenv("QLOG_TARGET_URL", "file:///etc/passwd")

    with pytest.raises(ValidationError):
        RecorderConfig()


def test_rejects_tiny_poll_interval(monkeypatch):
    monkeypatch.setenv("QLOG_EVENT_POLL_INTERVAL_MS", "1")

    with pytest.raises(ValidationError):
        RecorderConfig()


def test_rejects_interactions_directory(monkeypatch, tmp_path):
    monkeypatch.setenv("QLOG_INTERACTIONS_FILE", str(tmp_path))

    with pytest.raises(ValidationError, match="is a directory"):
        RecorderConfig()


def test_missing_interactions_file_is_accepted(monkeypatch, tmp_path):
    monkeypatch.setenv("QLOG_INTERACTIONS_FILE", str(tmp_path / "later.qlog"))

    assert RecorderConfig().interactions_file == tmp_path / "later.qlog"


def test_get_config_is_cached():
    assert get_config() is get_config()

    first = get_config()
    reset_config()
    assert get_config() is not first

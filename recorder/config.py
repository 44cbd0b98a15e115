"""Configuration management for the qlog recorder.

Loads and validates environment variables using Pydantic settings.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RecorderConfig(BaseSettings):
    """Recorder configuration loaded from environment variables."""

    # Server settings
    env: Literal["development", "production", "test"] = Field(
        default="development", alias="QLOG_ENV"
    )
    host: str = Field(default="0.0.0.0", alias="QLOG_HOST")
    port: int = Field(default=8000, alias="QLOG_PORT", ge=1024, le=65535)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="QLOG_LOG_LEVEL"
    )

    # Session settings
    target_url: str = Field(
        default="https://dash.akamaized.net/envivio/EnvivioDash3/manifest.mpd",
        alias="QLOG_TARGET_URL",
    )
    autosave: bool = Field(default=False, alias="QLOG_AUTOSAVE")
    autoplay: bool = Field(default=False, alias="QLOG_AUTOPLAY")
    do_polling: bool = Field(default=False, alias="QLOG_DO_POLLING")
    interactions_file: Optional[Path] = Field(
        default=None, alias="QLOG_INTERACTIONS_FILE"
    )
    output_dir: Path = Field(default=Path("traces"), alias="QLOG_OUTPUT_DIR")

    # Poller intervals
    event_poll_interval_ms: int = Field(
        default=100, alias="QLOG_EVENT_POLL_INTERVAL_MS", ge=10, le=60000
    )
    bitrate_poll_interval_ms: int = Field(
        default=5000, alias="QLOG_BITRATE_POLL_INTERVAL_MS", ge=100, le=600000
    )

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        """Require an absolute http(s) manifest URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Target URL must be http(s), got {v!r}")
        return v

    @field_validator("interactions_file")
    @classmethod
    def validate_interactions_file(cls, v: Optional[Path]) -> Optional[Path]:
        """Reject directories; a missing file is reported when it is loaded."""
        if v is not None and v.is_dir():
            raise ValueError(f"Interactions file {v} is a directory")
        return v

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Singleton configuration instance
_config: RecorderConfig | None = None


def get_config() -> RecorderConfig:
    """Get the global configuration instance.

    Returns:
        RecorderConfig: Configuration singleton
    """
    global _config
    if _config is None:
        _config = RecorderConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call reloads it."""
    global _config
    _config = None

"""Environment-driven settings for sqld.

Fields
──────
default_uri   : Connection string used when ``Conn`` is given none
busy_timeout  : Seconds the engine waits on a locked database
log_level     : Structlog log level
log_json      : JSON log lines (True), console (False), auto-detect (None)

Every field reads from ``SQLD_<FIELD>`` or a ``.env`` file in the working
directory::

    SQLD_DEFAULT_URI="file:app.db?mode=rwc"
    SQLD_BUSY_TIMEOUT=10

Tags:
    settings, configuration, pydantic, environment, sqld
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Shared-cache in-memory database, visible to every Conn in the process
DEFAULT_URI = "file:mem?mode=memory&cache=shared"


class SqldSettings(BaseSettings):
    """Settings shared by every connection opened in this process."""

    model_config = SettingsConfigDict(
        env_prefix="SQLD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Engine ───────────────────────────────────────────────────
    default_uri: str = DEFAULT_URI
    busy_timeout: float = Field(default=5.0, ge=0.0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level


_settings_cache: dict[str, SqldSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SqldSettings:
    """Load, validate, and cache the process settings."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SqldSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DEFAULT_URI",
    "SqldSettings",
    "get_settings",
    "clear_settings_cache",
]

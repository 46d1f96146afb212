"""Tests for sqld.settings module.

Covers:
- SqldSettings defaults
- Environment variable and .env overrides
- Validation
- get_settings caching
"""

import pytest
from pydantic import ValidationError

from sqld import Conn
from sqld.settings import DEFAULT_URI, SqldSettings, clear_settings_cache, get_settings


@pytest.fixture
def no_uri_env(monkeypatch):
    monkeypatch.delenv("SQLD_DEFAULT_URI", raising=False)


class TestDefaults:
    def test_default_uri(self, no_uri_env):
        assert SqldSettings().default_uri == DEFAULT_URI == "file:mem?mode=memory&cache=shared"

    def test_busy_timeout(self):
        assert SqldSettings().busy_timeout == 5.0

    def test_log_level(self):
        assert SqldSettings().log_level == "WARNING"

    def test_log_json_autodetect(self):
        assert SqldSettings().log_json is None


class TestEnvOverride:
    def test_uri_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLD_DEFAULT_URI", "file::memory:")
        assert SqldSettings().default_uri == "file::memory:"

    def test_busy_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLD_BUSY_TIMEOUT", "0.25")
        assert SqldSettings().busy_timeout == 0.25

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("SQLD_LOG_LEVEL", "debug")
        assert SqldSettings().log_level == "DEBUG"

    def test_log_json_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLD_LOG_JSON", "true")
        assert SqldSettings().log_json is True

    def test_dotenv_file(self, sandbox, no_uri_env):
        (sandbox / ".env").write_text('SQLD_DEFAULT_URI="file:fromenv?mode=memory"\n')
        assert SqldSettings().default_uri == "file:fromenv?mode=memory"

    def test_unrelated_env_ignored(self, monkeypatch):
        monkeypatch.setenv("SQLD_UNKNOWN_FIELD", "x")
        SqldSettings()


class TestValidation:
    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("SQLD_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            SqldSettings()

    def test_negative_timeout(self, monkeypatch):
        monkeypatch.setenv("SQLD_BUSY_TIMEOUT", "-1")
        with pytest.raises(ValidationError):
            SqldSettings()


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_clear_cache_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SQLD_BUSY_TIMEOUT", "9")
        assert get_settings() is first
        clear_settings_cache()
        assert get_settings().busy_timeout == 9.0

    def test_conn_uses_configured_uri(self, monkeypatch):
        monkeypatch.setenv("SQLD_DEFAULT_URI", "file::memory:")
        clear_settings_cache()
        conn = Conn()
        assert conn.uri == "file::memory:"
        conn.close()

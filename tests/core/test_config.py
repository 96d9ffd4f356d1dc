"""Tests for lantern.core.config - BotSettings and global config management.

Tests cover:
- Settings loading with defaults
- LANTERN_ environment overrides
- Bare legacy aliases (SESSION_ID, MODE, PREFIX, AUTO_REACT, PORT)
- Singleton behavior (get_config / clear_config_cache)
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from lantern.core.config import (
    DEFAULT_MEGA_API_URL,
    BotSettings,
    clear_config_cache,
    get_config,
)

# ============================================================================
# BotSettings - Default Values
# ============================================================================


class TestBotSettingsDefaults:
    """Test that BotSettings loads with correct default values."""

    def test_session_defaults(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.session_id is None
        assert settings.session_marker == "POPKID"
        assert settings.session_dir == Path("session")

    def test_behaviour_defaults(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.mode == "public"
        assert settings.is_public is True
        assert settings.prefix == "."
        assert settings.auto_react is False

    def test_status_defaults(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.timezone == "Africa/Nairobi"
        assert settings.status_interval == 10.0
        assert settings.live_status_quotes is False

    def test_server_and_remote_defaults(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.host == "0.0.0.0"
        assert settings.port == 3000
        assert settings.static_dir == Path("mydata")
        assert settings.mega_api_url == DEFAULT_MEGA_API_URL
        assert settings.remote_timeout == 60.0

    def test_collaborators_unset(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.transport is None
        assert settings.message_handler is None
        assert settings.call_handler is None
        assert settings.group_handler is None

    def test_logging_defaults(self, clean_env):
        settings = BotSettings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_format == ""
        assert settings.log_file is None


# ============================================================================
# Environment overrides
# ============================================================================


class TestEnvironmentOverrides:
    """Test loading from environment variables."""

    def test_prefixed_variables(self, clean_env, monkeypatch):
        monkeypatch.setenv("LANTERN_BOT_NAME", "Beacon")
        monkeypatch.setenv("LANTERN_STATUS_INTERVAL", "2.5")
        monkeypatch.setenv("LANTERN_SESSION_DIR", "/tmp/creds")

        settings = BotSettings(_env_file=None)

        assert settings.bot_name == "Beacon"
        assert settings.status_interval == 2.5
        assert settings.session_dir == Path("/tmp/creds")

    def test_bare_aliases(self, clean_env, monkeypatch):
        monkeypatch.setenv("SESSION_ID", "POPKID;;;abc#def")
        monkeypatch.setenv("MODE", "PRIVATE")
        monkeypatch.setenv("PREFIX", "!")
        monkeypatch.setenv("AUTO_REACT", "true")
        monkeypatch.setenv("PORT", "8080")

        settings = BotSettings(_env_file=None)

        assert settings.session_id == "POPKID;;;abc#def"
        assert settings.mode == "private"
        assert settings.is_public is False
        assert settings.prefix == "!"
        assert settings.auto_react is True
        assert settings.port == 8080

    def test_prefixed_alias_wins_over_bare(self, clean_env, monkeypatch):
        monkeypatch.setenv("LANTERN_PORT", "9000")
        monkeypatch.setenv("PORT", "8080")

        assert BotSettings(_env_file=None).port == 9000

    def test_blank_session_id_is_none(self, clean_env, monkeypatch):
        monkeypatch.setenv("SESSION_ID", "   ")

        assert BotSettings(_env_file=None).session_id is None

    def test_invalid_mode_rejected(self, clean_env, monkeypatch):
        monkeypatch.setenv("MODE", "sometimes")

        with pytest.raises(ValidationError):
            BotSettings(_env_file=None)

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("LANTERN_OWNER_NAME=alice\nPREFIX=!\n")

        settings = BotSettings(_env_file=env_file)

        assert settings.owner_name == "alice"
        assert settings.prefix == "!"


# ============================================================================
# Properties
# ============================================================================


class TestProperties:
    def test_newsletter_name_defaults_to_bot_name(self, clean_env, monkeypatch):
        monkeypatch.setenv("LANTERN_BOT_NAME", "Beacon")

        assert BotSettings(_env_file=None).display_newsletter_name == "Beacon bot"

    def test_newsletter_name_override(self, clean_env, monkeypatch):
        monkeypatch.setenv("LANTERN_NEWSLETTER_NAME", "Updates")

        assert BotSettings(_env_file=None).display_newsletter_name == "Updates"


# ============================================================================
# Global config
# ============================================================================


class TestGlobalConfig:
    def test_get_config_is_singleton(self, clean_env):
        assert get_config() is get_config()

    def test_clear_config_cache(self, clean_env, monkeypatch):
        first = get_config()
        monkeypatch.setenv("LANTERN_BOT_NAME", "Other")
        clear_config_cache()

        second = get_config()

        assert second is not first
        assert second.bot_name == "Other"

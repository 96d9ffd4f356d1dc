# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Core configuration - centralized settings for the lantern package.

All environment-based configuration flows through this module. Settings
use the LANTERN_ prefix; the bare names used by older bot deployments
(SESSION_ID, MODE, PREFIX, AUTO_REACT, PORT) are accepted as aliases.

Usage:
    from lantern.core.config import get_config
    config = get_config()

    session_dir = config.session_dir
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MEGA_API_URL = "https://g.api.mega.co.nz/cs"


class BotSettings(BaseSettings):
    """Configuration settings for a Lantern bot process.

    Loaded once at process start from the environment and an optional
    ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LANTERN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # SESSION SETTINGS
    # ==========================================================================

    session_id: str | None = Field(
        default=None,
        description="Remote session token: <marker>;;;<fileReference>#<decryptionKey>",
        validation_alias=AliasChoices("LANTERN_SESSION_ID", "SESSION_ID"),
    )
    session_marker: str = Field(
        default="POPKID",
        description="Fixed marker that prefixes the session token payload",
    )
    session_dir: Path = Field(
        default=Path("session"),
        description="Directory holding the local credential bundle",
    )

    # ==========================================================================
    # BOT BEHAVIOUR
    # ==========================================================================

    mode: Literal["public", "private"] = Field(
        default="public",
        description="Whether the bot answers everyone or only its owner",
        validation_alias=AliasChoices("LANTERN_MODE", "MODE"),
    )
    prefix: str = Field(
        default=".",
        description="Command prefix (consumed by the message handler)",
        validation_alias=AliasChoices("LANTERN_PREFIX", "PREFIX"),
    )
    auto_react: bool = Field(
        default=False,
        description="React to inbound messages with a random glyph",
        validation_alias=AliasChoices("LANTERN_AUTO_REACT", "AUTO_REACT"),
    )
    bot_name: str = Field(default="Lantern", description="Display name used in status text")
    owner_name: str = Field(default="lantern", description="Owner name shown in the announcement")

    # ==========================================================================
    # STATUS SETTINGS
    # ==========================================================================

    timezone: str = Field(
        default="Africa/Nairobi",
        description="IANA timezone used for the status clock",
    )
    status_interval: float = Field(
        default=10.0,
        description="Seconds between live status updates",
    )
    live_status_quotes: bool = Field(
        default=False,
        description="Append a random quote to every live status update",
    )

    # ==========================================================================
    # ANNOUNCEMENT SETTINGS
    # ==========================================================================

    announcement_image_url: str = Field(
        default="https://files.catbox.moe/nk71o3.jpg",
        description="Image attached to the post-connect announcement",
    )
    newsletter_jid: str = Field(
        default="120363290715861418@newsletter",
        description="Newsletter the announcement is presented as forwarded from",
    )
    newsletter_name: str | None = Field(
        default=None,
        description="Newsletter display name (defaults to the bot name)",
    )
    channel_url: str = Field(
        default="https://whatsapp.com/channel/0029VajweHxKQuJP6qnjLM31",
        description="Link used by the announcement preview card",
    )

    # ==========================================================================
    # COLLABORATORS (dotted import paths: package.module:attribute)
    # ==========================================================================

    transport: str | None = Field(
        default=None,
        description="Transport factory called as factory(settings, store)",
    )
    message_handler: str | None = Field(default=None, description="Inbound message handler")
    call_handler: str | None = Field(default=None, description="Inbound call handler")
    group_handler: str | None = Field(default=None, description="Group membership handler")

    # ==========================================================================
    # REMOTE STORE
    # ==========================================================================

    mega_api_url: str = Field(default=DEFAULT_MEGA_API_URL, description="MEGA API endpoint")
    remote_timeout: float = Field(default=60.0, description="Remote download timeout in seconds")

    # ==========================================================================
    # LIVENESS SERVER
    # ==========================================================================

    host: str = Field(default="0.0.0.0", description="Host to bind the liveness server to")
    port: int = Field(
        default=3000,
        description="Port for the liveness server",
        validation_alias=AliasChoices("LANTERN_PORT", "PORT"),
    )
    static_dir: Path = Field(default=Path("mydata"), description="Static files served at /")

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(default="", description="Log format: 'json', 'text', or '' (auto-detect)")
    log_file: str | None = Field(default=None, description="Log file path (optional)")

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("session_id", mode="before")
    @classmethod
    def _blank_session_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_public(self) -> bool:
        return self.mode == "public"

    @property
    def display_newsletter_name(self) -> str:
        return self.newsletter_name or f"{self.bot_name} bot"


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: BotSettings | None = None


def get_config() -> BotSettings:
    """Get the global configuration instance.

    Returns:
        The singleton BotSettings instance.
    """
    global _config
    if _config is None:
        _config = BotSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None

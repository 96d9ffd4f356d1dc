"""Lantern Core - configuration, logging and error primitives."""

from .config import BotSettings, clear_config_cache, get_config
from .exceptions import (
    ConfigException,
    CredentialStoreError,
    DownloadError,
    FetchError,
    HandlerFailure,
    InvalidTokenFormat,
    LanternException,
    NotFoundError,
    PersistError,
    StartupError,
    TransportCloseTerminal,
    ValidationException,
)
from .logging import (
    configure_logging,
    connection_context,
    redact_token,
)

__all__ = [
    "BotSettings",
    "clear_config_cache",
    "get_config",
    "ConfigException",
    "CredentialStoreError",
    "DownloadError",
    "FetchError",
    "HandlerFailure",
    "InvalidTokenFormat",
    "LanternException",
    "NotFoundError",
    "PersistError",
    "StartupError",
    "TransportCloseTerminal",
    "ValidationException",
    "configure_logging",
    "connection_context",
    "redact_token",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Structured logging configuration for Lantern.

Provides:
- Consistent log formatting across the bot runtime
- JSON formatter for production (machine-parseable)
- Standard formatter for development (human-readable)
- Connection generation tagging, so records emitted while handling a
  transport connection's events can be told apart across reconnects
- Redaction of session tokens and decryption keys
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variable for the current connection generation (async-safe)
_connection_generation: ContextVar[int | None] = ContextVar("connection_generation", default=None)


def get_connection_generation() -> int | None:
    """Get the connection generation bound to the current context."""
    return _connection_generation.get()


@contextmanager
def connection_context(generation: int | None) -> Generator[int | None, None, None]:
    """Context manager scoping log records to one connection generation.

    Example:
        with connection_context(handle_generation):
            logger.info("Connection open")  # tagged with the generation
    """
    token = _connection_generation.set(generation)
    try:
        yield generation
    finally:
        _connection_generation.reset(token)


def redact_token(value: str | None, visible: int = 6) -> str:
    """Redact a secret for logging, keeping only a short leading hint.

    Args:
        value: The secret (session token, decryption key).
        visible: Number of leading characters to keep.

    Returns:
        A string safe to log.
    """
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "[REDACTED]"
    return f"{value[:visible]}...[REDACTED]"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production environments.

    Includes the connection generation when present in context.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        generation = get_connection_generation()
        if generation is not None:
            log_data["connection"] = generation

        # Add source location for errors
        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Standard log formatter for development.

    Human-readable format with colors for terminal output.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    CONNECTION_COLOR = "\033[90m"  # Gray

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Make a copy to avoid mutating the original record
        record = logging.makeLogRecord(record.__dict__)

        generation = get_connection_generation()
        if generation is not None:
            if self.use_colors:
                tag = f"{self.CONNECTION_COLOR}[conn {generation}]{self.RESET} "
            else:
                tag = f"[conn {generation}] "
            record.msg = tag + str(record.msg)

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure logging for the bot process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to config
        json_format: Use JSON format (auto-detect if None)
        log_file: Optional file to write logs to; defaults to config

    Environment variables:
        LANTERN_LOG_LEVEL: Log level
        LANTERN_LOG_FORMAT: Log format ("json" or "text", auto-detect if unset)
        LANTERN_LOG_FILE: Log file path
    """
    from .config import get_config

    config = get_config()

    level = config.log_level if level is None else level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        format_env = config.log_format.lower()
        if format_env == "json":
            json_format = True
        elif format_env == "text":
            json_format = False
        else:
            # Auto-detect: use JSON if not in a terminal
            json_format = not sys.stderr.isatty()

    log_file = config.log_file if log_file is None else log_file

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        # Always use JSON for file output
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Set levels for noisy libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

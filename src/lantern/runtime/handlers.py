# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""External handler bundle.

The message, call and group-update handlers hold the bot's business logic
and live outside the runtime. Each is an async callable ``(event, handle)``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..core.config import BotSettings
from ..core.exceptions import ConfigException
from ..core.loader import load_object
from ..transport.adapter import summarize_event

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Any], Awaitable[None]]


async def log_only_handler(event: Any, handle: Any) -> None:
    """Default for unconfigured handlers."""
    logger.debug(f"Unhandled event: {summarize_event(event)}")


@dataclass
class Handlers:
    """The three external collaborators the dispatcher routes to."""

    on_messages: Handler = log_only_handler
    on_call: Handler = log_only_handler
    on_group_update: Handler = log_only_handler

    @classmethod
    def from_settings(cls, settings: BotSettings) -> Handlers:
        """Load handlers from their dotted paths; unset ones log only.

        Raises:
            ConfigException: If a path does not resolve to an async callable.
        """
        kwargs: dict[str, Handler] = {}
        for attr, setting in (
            ("on_messages", "message_handler"),
            ("on_call", "call_handler"),
            ("on_group_update", "group_handler"),
        ):
            path = getattr(settings, setting)
            if not path:
                continue
            handler = load_object(path, setting=setting)
            if not callable(handler):
                raise ConfigException(f"{setting} {path!r} is not callable")
            if not inspect.iscoroutinefunction(handler) and not inspect.iscoroutinefunction(
                getattr(handler, "__call__", None)
            ):
                raise ConfigException(f"{setting} {path!r} must be an async callable")
            kwargs[attr] = handler
            logger.info(f"Loaded {setting}: {path}")
        return cls(**kwargs)

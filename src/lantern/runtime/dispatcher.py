# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""
Event Dispatcher - routes inbound transport events to external handlers.

Handles:
- Message batches (handler first, then the optional auto-reaction)
- Incoming calls
- Group membership changes

Every handler call sits behind an isolation boundary: a failure is logged
with the handler name and the event that caused it, and never reaches the
supervisor.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Optional, Sequence, Set

from ..core.exceptions import HandlerFailure
from ..transport.adapter import (
    CallEvent,
    GroupParticipantsUpdate,
    MessageBatch,
    summarize_event,
)
from .handlers import Handlers

if TYPE_CHECKING:
    from ..transport.adapter import ConnectionHandle, InboundMessage

logger = logging.getLogger(__name__)

REACTION_EMOJIS: tuple[str, ...] = (
    "❤️", "🔥", "😂", "👍", "🎉", "😍", "🙏", "💯", "✨", "😎",
    "🤩", "🥳", "👏", "💪", "🌟", "😊", "🤝", "💫", "🫶", "⚡",
)


class EventDispatcher:
    """
    Routes inbound events, one task per event, in arrival order.

    Args:
        handlers: External handler bundle
        auto_react: Whether to react to inbound messages
        emojis: Reaction glyphs chosen from uniformly
        rng: Random source (injectable for tests)
    """

    def __init__(
        self,
        handlers: Handlers,
        auto_react: bool = False,
        emojis: Sequence[str] = REACTION_EMOJIS,
        rng: Optional[random.Random] = None,
    ):
        self.handlers = handlers
        self.auto_react = auto_react
        self.emojis = tuple(emojis)
        self.rng = rng or random.Random()

        self._tasks: Set[asyncio.Task] = set()
        self._stats = {
            "batches": 0,
            "calls": 0,
            "group_updates": 0,
            "reactions": 0,
            "handler_failures": 0,
            "reaction_failures": 0,
        }

    def get_stats(self) -> dict[str, int]:
        return {**self._stats, "in_flight": len(self._tasks)}

    # -------------------------------------------------------------------------
    # Fire-and-forget entry point
    # -------------------------------------------------------------------------

    def dispatch(self, event: Any, handle: "ConnectionHandle") -> Optional[asyncio.Task]:
        """Schedule handling of *event*; returns the task (or None if unroutable)."""
        if isinstance(event, MessageBatch):
            coro: Awaitable[None] = self.handle_messages(event, handle)
        elif isinstance(event, CallEvent) or _is_call_list(event):
            coro = self.handle_call(event, handle)
        elif isinstance(event, GroupParticipantsUpdate):
            coro = self.handle_group_update(event, handle)
        else:
            logger.warning(f"Dropping unroutable event {summarize_event(event)}")
            return None

        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight handler tasks (used by tests and shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Per-event handling
    # -------------------------------------------------------------------------

    async def handle_messages(self, batch: MessageBatch, handle: "ConnectionHandle") -> None:
        self._stats["batches"] += 1
        await self._guarded("message_handler", self.handlers.on_messages, batch, handle)

        try:
            message = batch.first
            if message is not None and self.should_react(message):
                emoji = self.rng.choice(self.emojis)
                await handle.react(message, emoji)
                self._stats["reactions"] += 1
        except Exception as e:
            self._stats["reaction_failures"] += 1
            logger.warning(f"Error during auto reaction: {e}")

    async def handle_call(self, event: Any, handle: "ConnectionHandle") -> None:
        self._stats["calls"] += 1
        await self._guarded("call_handler", self.handlers.on_call, event, handle)

    async def handle_group_update(self, event: GroupParticipantsUpdate, handle: "ConnectionHandle") -> None:
        self._stats["group_updates"] += 1
        await self._guarded("group_handler", self.handlers.on_group_update, event, handle)

    def should_react(self, message: "InboundMessage") -> bool:
        """Only other people's messages with content, and only when enabled."""
        return self.auto_react and not message.key.from_me and bool(message.content) and bool(self.emojis)

    async def _guarded(self, name: str, handler: Any, event: Any, handle: "ConnectionHandle") -> bool:
        try:
            await handler(event, handle)
            return True
        except Exception as e:
            self._stats["handler_failures"] += 1
            failure = HandlerFailure(name, summarize_event(event), e)
            logger.error(
                failure.message,
                exc_info=e,
                extra={"extra_data": failure.to_dict()},
            )
            return False


def _is_call_list(event: Any) -> bool:
    return isinstance(event, (list, tuple)) and bool(event) and all(isinstance(e, CallEvent) for e in event)

# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""
Periodic status - keeps the account's status text showing the bot is alive.

One recurring task per process. Each tick composes
``"<bot> is active at HH:MM:SS"`` in a fixed timezone, optionally followed
by a random quote, and pushes it through whichever connection is current.
A failed tick is logged and the next one runs on schedule.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from ..transport.adapter import ConnectionHandle

logger = logging.getLogger(__name__)

LIFE_QUOTES: tuple[str, ...] = (
    "The only way to do great work is to love what you do.",
    "Strive not to be a success, but rather to be of value.",
    "The mind is everything. What you think you become.",
    "The best time to plant a tree was 20 years ago. The second best time is now.",
    "Life is what happens when you're busy making other plans.",
    "Be the change that you wish to see in the world.",
    "The future belongs to those who believe in the beauty of their dreams.",
    "It is never too late to be what you might have been.",
    "Do not wait to strike till the iron is hot; but make the iron hot by striking.",
    "The journey of a thousand miles begins with a single step.",
)


def compose_status(
    bot_name: str,
    tz: ZoneInfo,
    with_quote: bool = False,
    quotes: Sequence[str] = LIFE_QUOTES,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> str:
    """Build the status text for the current time of day."""
    now = now.astimezone(tz) if now is not None else datetime.now(tz)
    text = f"{bot_name} is active at {now.strftime('%H:%M:%S')}"
    if with_quote and quotes:
        text = f"{text} | {(rng or random).choice(quotes)}"
    return text


async def push_status(handle: "ConnectionHandle", text: str) -> bool:
    """Push a status update; failures are logged, never raised."""
    try:
        await handle.update_status(text)
    except Exception as e:
        logger.warning(f"Failed to update status: {e}")
        return False
    logger.debug(f"Status updated to: {text!r}")
    return True


class PeriodicStatusTask:
    """
    Singleton recurring status update.

    Uses ``get_handle`` on every tick so updates follow reconnects instead
    of staying bound to the connection that was open when the task started.
    """

    def __init__(
        self,
        get_handle: Callable[[], Optional["ConnectionHandle"]],
        bot_name: str,
        timezone: str = "Africa/Nairobi",
        interval: float = 10.0,
        with_quotes: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self.get_handle = get_handle
        self.bot_name = bot_name
        self.tz = ZoneInfo(timezone)
        self.interval = interval
        self.with_quotes = with_quotes
        self.rng = rng or random.Random()

        self._task: Optional[asyncio.Task] = None
        self._stats = {"ticks": 0, "updates": 0, "failures": 0, "skipped": 0}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_stats(self) -> dict[str, int]:
        return dict(self._stats)

    def start(self) -> None:
        """Start the recurring task; a second call is a no-op."""
        if self._task is not None:
            logger.warning("Status task already started")
            return
        self._task = asyncio.create_task(self._loop(), name="lantern-status")
        logger.info(f"Live status updates every {self.interval:g}s")

    async def stop(self) -> None:
        """Cancel the task (process shutdown only)."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def tick(self) -> bool:
        """Run one update. Returns True if the status was pushed."""
        self._stats["ticks"] += 1
        handle = self.get_handle()
        if handle is None:
            self._stats["skipped"] += 1
            logger.debug("Skipping status update: no open connection")
            return False

        try:
            text = compose_status(self.bot_name, self.tz, self.with_quotes, rng=self.rng)
        except Exception as e:
            logger.warning(f"Failed to compose status: {e}")
            self._stats["failures"] += 1
            return False

        if await push_status(handle, text):
            self._stats["updates"] += 1
            return True
        self._stats["failures"] += 1
        return False

    async def _loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"Status loop error: {e}")

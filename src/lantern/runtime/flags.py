# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Process-wide lifecycle flags owned by the connection supervisor."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass
class ProcessFlags:
    """One-time initialization guards that survive reconnects.

    ``initial_connection`` stays True until the first open claims the
    post-connect actions; ``live_status_task_running`` becomes True once
    the periodic status task is started. Neither is ever reset. Claims are
    check-and-set under a lock, so concurrent open events cannot both win.
    """

    initial_connection: bool = True
    live_status_task_running: bool = False
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def claim_initial_connection(self) -> bool:
        """Return True exactly once per process: for the first open."""
        async with self._lock:
            if not self.initial_connection:
                return False
            self.initial_connection = False
            return True

    async def claim_status_task(self) -> bool:
        """Return True exactly once per process: to whoever starts the status task."""
        async with self._lock:
            if self.live_status_task_running:
                return False
            self.live_status_task_running = True
            return True

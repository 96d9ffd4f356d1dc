# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""
Connection Supervisor - owns the transport session and its lifecycle.

This module manages:
- Establishing the transport connection from the bootstrapped credentials
- Persisting every credential rotation the transport reports
- Classifying disconnects: reconnect immediately, or halt on logout
- One-time post-connect actions and the singleton status task
- Forwarding inbound traffic to the event dispatcher

All transport callbacks only enqueue; a single loop consumes the queue and
is the only writer of supervisor state. Each connection handle gets a
generation number and lifecycle events from an older generation are
ignored, so a late close from a dead handle cannot trigger a second
reconnect.

Reconnection is deliberately unthrottled: no backoff, no retry limit, no
jitter. Wrap the transport if a deployment needs backoff.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from ..core.exceptions import StartupError, TransportCloseTerminal
from ..core.logging import connection_context
from ..transport.adapter import (
    ConnectionHandle,
    DisconnectCause,
    LifecycleEvent,
    LifecycleState,
    Transport,
    TransportEventType,
)
from ..transport.disconnect import describe_cause, raise_for_terminal
from .announcement import build_announcement
from .flags import ProcessFlags
from .status import PeriodicStatusTask, compose_status, push_status

if TYPE_CHECKING:
    from ..core.config import BotSettings
    from ..session.bootstrap import BootstrapResult
    from ..session.store import CredentialStore
    from .dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


class SupervisorState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    TERMINATED = "terminated"


class SupervisorOutcome(StrEnum):
    """Why :meth:`ConnectionSupervisor.run` returned."""

    LOGGED_OUT = "logged_out"
    STOPPED = "stopped"


@dataclass(frozen=True)
class _Envelope:
    generation: int
    handle: Optional[ConnectionHandle]
    kind: TransportEventType
    payload: Any


_STOP = object()

_INBOUND_KINDS = (
    TransportEventType.MESSAGES,
    TransportEventType.CALL,
    TransportEventType.GROUP_PARTICIPANTS,
)


class ConnectionSupervisor:
    """
    Drives the connection state machine for one bot process.

    States: idle -> connecting -> open -> closed -> connecting ... and the
    terminal ``terminated`` after a logout.
    """

    def __init__(
        self,
        transport: Transport,
        store: "CredentialStore",
        settings: "BotSettings",
        dispatcher: "EventDispatcher",
        flags: Optional[ProcessFlags] = None,
        status_task: Optional[PeriodicStatusTask] = None,
    ):
        """
        Initialize the ConnectionSupervisor.

        Args:
            transport: Creates connection handles
            store: Credential store; receives every credential rotation
            settings: Bot settings (mode, names, status options)
            dispatcher: Receives inbound traffic
            flags: One-time initialization guards (a fresh set by default)
            status_task: Periodic status updater (built from settings by default)
        """
        self.transport = transport
        self.store = store
        self.settings = settings
        self.dispatcher = dispatcher
        self.flags = flags or ProcessFlags()
        self.status_task = status_task or PeriodicStatusTask(
            get_handle=self.get_open_handle,
            bot_name=settings.bot_name,
            timezone=settings.timezone,
            interval=settings.status_interval,
            with_quotes=settings.live_status_quotes,
        )

        self._queue: asyncio.Queue = asyncio.Queue()
        self._handle: Optional[ConnectionHandle] = None
        self._generation = 0
        self._state = SupervisorState.IDLE
        self._interactive = False
        self._stopping = False
        self._started_at: Optional[float] = None
        self._background: Set[asyncio.Task] = set()

        self._stats: Dict[str, int] = {
            "connect_attempts": 0,
            "connect_failures": 0,
            "reconnects": 0,
            "opens": 0,
            "closes": 0,
            "stale_events": 0,
            "announcements": 0,
        }

    # -------------------------------------------------------------------------
    # PROPERTIES
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_handle(self) -> Optional[ConnectionHandle]:
        return self._handle

    def get_open_handle(self) -> Optional[ConnectionHandle]:
        """The current handle if it is open, else None."""
        if self._state is SupervisorState.OPEN:
            return self._handle
        return None

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "state": str(self._state),
            "generation": self._generation,
            "uptime_seconds": time.monotonic() - self._started_at if self._started_at else 0.0,
        }

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    async def run(self, bootstrap: "BootstrapResult") -> SupervisorOutcome:
        """Connect and process events until logout or :meth:`stop`.

        Raises:
            StartupError: If the first connection attempt fails.
        """
        if self._state is not SupervisorState.IDLE:
            raise RuntimeError("Supervisor already started")

        self._started_at = time.monotonic()
        self._interactive = bootstrap.interactive
        logger.info(f"Starting connection (credentials: {bootstrap.source})")

        try:
            await self._connect()
        except Exception as e:
            self._state = SupervisorState.CLOSED
            raise StartupError(f"Initial connection failed: {e}") from e

        while True:
            envelope = await self._queue.get()
            if envelope is _STOP or self._stopping:
                return SupervisorOutcome.STOPPED
            outcome = await self._process(envelope)
            if outcome is not None:
                await self._shutdown_background()
                return outcome

    async def stop(self) -> None:
        """Stop processing, close the connection and the status task."""
        self._stopping = True
        self._queue.put_nowait(_STOP)
        await self._shutdown_background()
        if self._handle is not None:
            try:
                await self._handle.close()
            except Exception as e:
                logger.debug(f"Error closing connection: {e}")

    # -------------------------------------------------------------------------
    # CONNECTION
    # -------------------------------------------------------------------------

    async def _connect(self) -> None:
        self._generation += 1
        generation = self._generation
        self._state = SupervisorState.CONNECTING
        self._handle = None
        self._stats["connect_attempts"] += 1

        credentials = self.store.load_or_none()
        # Pair interactively until the transport has persisted credentials
        interactive = credentials is None
        if self._interactive and not interactive and generation == 1:
            logger.debug("Credentials appeared after bootstrap; resuming instead of pairing")
        with connection_context(generation):
            logger.debug(f"Connecting (interactive={interactive})")
            handle = await self.transport.connect(credentials, interactive=interactive)

        if self._stopping:
            # stop() already ran and could not see this handle
            logger.debug("Stopped while connecting; closing the new connection")
            try:
                await handle.close()
            except Exception as e:
                logger.debug(f"Error closing connection: {e}")
            return

        handle.public = self.settings.is_public
        handle.on(TransportEventType.CREDENTIALS_CHANGED, self.store.save)
        handle.on(
            TransportEventType.LIFECYCLE,
            functools.partial(self._enqueue, generation, handle, TransportEventType.LIFECYCLE),
        )
        for kind in _INBOUND_KINDS:
            handle.on(kind, functools.partial(self._enqueue, generation, handle, kind))
        self._handle = handle

    async def _reconnect(self) -> None:
        self._stats["reconnects"] += 1
        # Yield once so a transport that fails instantly cannot starve the loop
        await asyncio.sleep(0)
        try:
            await self._connect()
        except Exception as e:
            self._stats["connect_failures"] += 1
            self._state = SupervisorState.CLOSED
            logger.error(f"Reconnect attempt failed: {e}")
            self._enqueue(
                self._generation,
                None,
                TransportEventType.LIFECYCLE,
                LifecycleEvent(LifecycleState.CLOSED, DisconnectCause(None, f"connect failed: {e}")),
            )

    def _enqueue(
        self,
        generation: int,
        handle: Optional[ConnectionHandle],
        kind: TransportEventType,
        payload: Any,
    ) -> None:
        self._queue.put_nowait(_Envelope(generation, handle, kind, payload))

    # -------------------------------------------------------------------------
    # EVENT PROCESSING
    # -------------------------------------------------------------------------

    async def _process(self, envelope: _Envelope) -> Optional[SupervisorOutcome]:
        with connection_context(envelope.generation):
            if envelope.kind is TransportEventType.LIFECYCLE:
                if envelope.generation != self._generation:
                    self._stats["stale_events"] += 1
                    logger.debug(f"Ignoring lifecycle event from stale connection {envelope.generation}")
                    return None
                return await self._on_lifecycle(envelope.payload)

            if envelope.handle is not None:
                self.dispatcher.dispatch(envelope.payload, envelope.handle)
            return None

    async def _on_lifecycle(self, event: LifecycleEvent) -> Optional[SupervisorOutcome]:
        if event.state is LifecycleState.CONNECTING:
            self._state = SupervisorState.CONNECTING
            if event.qr:
                logger.info("Pairing code available; scan it from the linked-devices screen")
            return None

        if event.state is LifecycleState.OPEN:
            self._state = SupervisorState.OPEN
            await self._on_open(self._handle)
            return None

        self._state = SupervisorState.CLOSED
        self._stats["closes"] += 1
        try:
            raise_for_terminal(event.cause)
        except TransportCloseTerminal as e:
            self._state = SupervisorState.TERMINATED
            logger.error(f"{e.message}; not reconnecting. Remove the stored session and bootstrap again.")
            return SupervisorOutcome.LOGGED_OUT

        logger.warning(f"Connection closed ({describe_cause(event.cause)}); reconnecting")
        await self._reconnect()
        return None

    async def _on_open(self, handle: Optional[ConnectionHandle]) -> None:
        self._stats["opens"] += 1
        if await self.flags.claim_initial_connection():
            logger.info(f"{self.settings.bot_name} is now online and powered up")
            if handle is not None:
                self._spawn(self._post_connect(handle))
        else:
            logger.info("Connection re-established after restart")

        if await self.flags.claim_status_task():
            self.status_task.start()

    async def _post_connect(self, handle: ConnectionHandle) -> None:
        """One-time actions after the first open: status refresh and announcement."""
        text = compose_status(self.settings.bot_name, self.status_task.tz, with_quote=True)
        await push_status(handle, text)

        if not handle.user_id:
            logger.warning("Connection has no own identity; skipping announcement")
            return
        try:
            await handle.send_message(handle.user_id, build_announcement(self.settings))
            self._stats["announcements"] += 1
            logger.info("Sent connection announcement")
        except Exception as e:
            logger.warning(f"Failed to send connection announcement: {e}")

    def _spawn(self, coro: Any) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _shutdown_background(self) -> None:
        await self.status_task.stop()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

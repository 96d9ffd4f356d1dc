# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""
Process orchestration - wires the pieces together for one bot process.

Startup order:
1. Credential store (fatal if unusable)
2. Transport and handlers from configuration
3. Liveness server in the background
4. Session bootstrap (local, remote, interactive)
5. Connection supervisor until logout or shutdown
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.config import BotSettings
from ..core.exceptions import ConfigException, LanternException
from ..core.loader import load_object
from ..server.app import LivenessServer
from ..session.bootstrap import SessionBootstrapper
from ..session.mega import MegaRemoteStore, RemoteStore
from ..session.remote import RemoteSessionFetcher
from ..session.store import CredentialStore
from ..transport.adapter import Transport
from .dispatcher import EventDispatcher
from .handlers import Handlers
from .supervisor import ConnectionSupervisor, SupervisorOutcome

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_LOGGED_OUT = 2


def load_transport(settings: BotSettings, store: CredentialStore) -> Transport:
    """Build the transport from the configured factory path.

    Raises:
        ConfigException: If no transport is configured or the path is bad.
    """
    if not settings.transport:
        raise ConfigException(
            "No transport configured (set LANTERN_TRANSPORT to package.module:factory)",
            missing_vars=["LANTERN_TRANSPORT"],
        )
    factory = load_object(settings.transport, setting="transport")
    if not callable(factory):
        raise ConfigException(f"transport {settings.transport!r} is not callable")
    return factory(settings, store)


def build_fetcher(settings: BotSettings, store: CredentialStore, remote: Optional[RemoteStore] = None) -> RemoteSessionFetcher:
    remote = remote or MegaRemoteStore(api_url=settings.mega_api_url, timeout=settings.remote_timeout)
    return RemoteSessionFetcher(remote, store, marker=settings.session_marker)


async def run_bot(
    settings: BotSettings,
    transport: Optional[Transport] = None,
    handlers: Optional[Handlers] = None,
    remote: Optional[RemoteStore] = None,
    serve: bool = True,
) -> int:
    """Run the bot until logout or shutdown.

    Args:
        settings: Bot settings
        transport: Transport to use (loaded from ``settings.transport`` if None)
        handlers: Handler bundle (loaded from settings if None)
        remote: Remote blob store (MEGA if None)
        serve: Whether to start the liveness server

    Returns:
        Process exit status: EXIT_OK, EXIT_LOGGED_OUT or EXIT_FATAL.
    """
    server: Optional[LivenessServer] = None
    supervisor: Optional[ConnectionSupervisor] = None
    try:
        store = CredentialStore(settings.session_dir)
        store.ensure_dir()

        if transport is None:
            transport = load_transport(settings, store)
        if handlers is None:
            handlers = Handlers.from_settings(settings)

        dispatcher = EventDispatcher(handlers, auto_react=settings.auto_react)
        supervisor = ConnectionSupervisor(transport, store, settings, dispatcher)

        if serve:
            server = LivenessServer(settings, status_provider=supervisor.get_stats)
            server.start_background()

        bootstrapper = SessionBootstrapper(
            store,
            build_fetcher(settings, store, remote),
            session_token=settings.session_id,
        )
        result = await bootstrapper.bootstrap()
        outcome = await supervisor.run(result)
    except LanternException as e:
        logger.critical(f"Fatal startup error: {e.message}", extra={"extra_data": e.to_dict()})
        return EXIT_FATAL
    finally:
        if supervisor is not None:
            await supervisor.stop()
        if server is not None:
            await server.stop()

    if outcome is SupervisorOutcome.LOGGED_OUT:
        return EXIT_LOGGED_OUT
    return EXIT_OK

# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Lantern - connection lifecycle runtime for a long-running chat bot.

Lantern owns everything between process start and the bot's message
handlers: it finds credentials (on disk, from a remote encrypted blob named
by a session token, or through interactive pairing), keeps the transport
connected forever unless the account is logged out, runs a singleton
"alive" status updater, and routes inbound traffic to external handlers.

Architecture:
  Session bootstrap (local -> remote -> interactive)
    -> Connection supervisor (single-writer state machine, generation-tagged events)
    -> Event dispatcher (isolated handler calls, optional auto-react)
    -> Liveness server (/health, static page)

CLI entry point: ``lantern``
"""

__version__ = "1.0.0"

from . import (
    core as core,
)

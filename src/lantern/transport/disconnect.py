# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Disconnect classification.

Every close is transient (reconnect immediately) except an explicit
logout, which is terminal.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum

from ..core.exceptions import TransportCloseTerminal
from .adapter import DisconnectCause


class DisconnectReason(IntEnum):
    """Status codes the chat protocol reports on close."""

    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    TIMED_OUT = 408
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    UNAVAILABLE_SERVICE = 503


class DisconnectClass(StrEnum):
    """What the supervisor does after a close."""

    TRANSIENT = "transient"
    TERMINAL = "terminal"


def classify_disconnect(cause: DisconnectCause | None) -> DisconnectClass:
    """Classify a close cause; only a logout is terminal."""
    if cause is not None and cause.status_code == DisconnectReason.LOGGED_OUT:
        return DisconnectClass.TERMINAL
    return DisconnectClass.TRANSIENT


def describe_cause(cause: DisconnectCause | None) -> str:
    if cause is None:
        return "no cause reported"
    label = cause.reason
    if cause.status_code is not None:
        try:
            name = DisconnectReason(cause.status_code).name.lower()
        except ValueError:
            name = "unknown"
        label = f"{cause.status_code} {name}" + (f": {cause.reason}" if cause.reason else "")
    return label or "no cause reported"


def raise_for_terminal(cause: DisconnectCause | None) -> None:
    """Raise :class:`TransportCloseTerminal` if *cause* is a logout."""
    if classify_disconnect(cause) is DisconnectClass.TERMINAL:
        raise TransportCloseTerminal(
            f"Logged out: {describe_cause(cause)}",
            status_code=cause.status_code if cause else None,
        )

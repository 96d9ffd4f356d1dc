# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Transport contract and event model.

The chat-protocol library is consumed as a black box. These protocols
define the minimal surface the runtime needs from it, so a real binding,
a bridge to another process, or a fake in tests can be plugged in.

A binding module exposes a factory ``factory(settings, store) ->
Transport`` referenced by the ``LANTERN_TRANSPORT`` setting.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..core.config import BotSettings
    from ..session.store import CredentialBundle, CredentialStore


class LifecycleState(StrEnum):
    """Connection state carried on lifecycle events."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class TransportEventType(StrEnum):
    """Event names a connection handle can be subscribed to."""

    LIFECYCLE = "lifecycle"
    CREDENTIALS_CHANGED = "credentials_changed"
    MESSAGES = "messages"
    CALL = "call"
    GROUP_PARTICIPANTS = "group_participants"


# ============================================================================
# Event payloads
# ============================================================================


@dataclass(frozen=True)
class DisconnectCause:
    """Structured reason for a close, as reported by the transport."""

    status_code: int | None = None
    reason: str = ""


@dataclass(frozen=True)
class LifecycleEvent:
    """A connection state change."""

    state: LifecycleState
    cause: DisconnectCause | None = None
    qr: str | None = None


@dataclass(frozen=True)
class MessageKey:
    """Identifies one message in a chat."""

    remote_jid: str
    id: str
    from_me: bool = False
    participant: str | None = None


@dataclass
class InboundMessage:
    """One inbound message; ``content`` is None for stubs (e.g. deletions)."""

    key: MessageKey
    content: dict[str, Any] | None = None
    push_name: str | None = None
    timestamp: int | None = None


@dataclass
class MessageBatch:
    """A batch of messages delivered together by the transport."""

    messages: list[InboundMessage] = field(default_factory=list)
    kind: str = "notify"

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def first(self) -> InboundMessage | None:
        return self.messages[0] if self.messages else None


@dataclass(frozen=True)
class CallEvent:
    """An incoming call offer or status change."""

    call_id: str
    from_jid: str
    status: str = "offer"
    is_video: bool = False
    is_group: bool = False


@dataclass(frozen=True)
class GroupParticipantsUpdate:
    """Members added to, removed from, promoted or demoted in a group."""

    group_id: str
    participants: tuple[str, ...] = ()
    action: str = "add"


Listener = Callable[[Any], Awaitable[None] | None]


# ============================================================================
# Transport protocols
# ============================================================================


@runtime_checkable
class ConnectionHandle(Protocol):
    """One live (or attempting) transport session.

    A closed handle is never reused. Listeners registered with :meth:`on`
    may be sync or async; the transport awaits async listeners before it
    treats the event as handled (so a ``credentials_changed`` listener
    completes its write before the rotation is considered done).
    """

    user_id: str | None
    public: bool

    def on(self, event: TransportEventType, listener: Listener) -> None: ...

    async def send_message(self, jid: str, content: dict[str, Any]) -> Any: ...

    async def update_status(self, text: str) -> None: ...

    async def react(self, message: InboundMessage, emoji: str) -> None: ...

    async def close(self) -> None: ...


@runtime_checkable
class Transport(Protocol):
    """Creates connection handles."""

    async def connect(
        self,
        credentials: CredentialBundle | None,
        *,
        interactive: bool,
    ) -> ConnectionHandle: ...


TransportFactory = Callable[["BotSettings", "CredentialStore"], Transport]


def summarize_event(event: Any) -> str:
    """Short, log-safe description of an inbound event."""
    if isinstance(event, MessageBatch):
        chats: Sequence[str] = sorted({m.key.remote_jid for m in event.messages})
        return f"messages[{len(event)}] kind={event.kind} chats={','.join(chats[:3])}"
    if isinstance(event, CallEvent):
        return f"call {event.call_id} from={event.from_jid} status={event.status}"
    if isinstance(event, GroupParticipantsUpdate):
        return f"group {event.group_id} {event.action} x{len(event.participants)}"
    if isinstance(event, (list, tuple)):
        return f"{type(event).__name__}[{len(event)}]"
    return type(event).__name__

"""Transport contract: the chat-protocol client consumed as a black box."""

from lantern.transport.adapter import (
    CallEvent,
    ConnectionHandle,
    DisconnectCause,
    GroupParticipantsUpdate,
    InboundMessage,
    LifecycleEvent,
    LifecycleState,
    MessageBatch,
    MessageKey,
    Transport,
    TransportEventType,
    TransportFactory,
)
from lantern.transport.disconnect import (
    DisconnectClass,
    DisconnectReason,
    classify_disconnect,
    describe_cause,
    raise_for_terminal,
)

__all__ = [
    "CallEvent",
    "ConnectionHandle",
    "DisconnectCause",
    "DisconnectClass",
    "DisconnectReason",
    "GroupParticipantsUpdate",
    "InboundMessage",
    "LifecycleEvent",
    "LifecycleState",
    "MessageBatch",
    "MessageKey",
    "Transport",
    "TransportEventType",
    "TransportFactory",
    "classify_disconnect",
    "describe_cause",
    "raise_for_terminal",
]

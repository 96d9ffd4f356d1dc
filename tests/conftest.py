"""Global test fixtures for the Lantern test suite."""

from __future__ import annotations

import asyncio
import inspect
import os
import socket
from collections import defaultdict
from collections.abc import Callable
from typing import Any

import pytest

from lantern.core.config import BotSettings, clear_config_cache
from lantern.session.store import CredentialBundle, CredentialStore
from lantern.transport.adapter import (
    DisconnectCause,
    InboundMessage,
    LifecycleEvent,
    LifecycleState,
    MessageBatch,
    MessageKey,
    TransportEventType,
)

# Bare names accepted as aliases by BotSettings
ALIAS_VARS = ("SESSION_ID", "MODE", "PREFIX", "AUTO_REACT", "PORT")


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all LANTERN_ variables and the bare alias names."""
    for key in list(os.environ.keys()):
        if key.startswith("LANTERN_") or key in ALIAS_VARS:
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def session_dir(tmp_path):
    """Temporary (not yet created) credential directory."""
    return tmp_path / "session"


@pytest.fixture
def store(session_dir):
    return CredentialStore(session_dir)


@pytest.fixture
def settings(clean_env, tmp_path, session_dir):
    """Settings isolated from the environment and any .env file."""
    return BotSettings(
        _env_file=None,
        session_dir=session_dir,
        static_dir=tmp_path / "static",
        bot_name="TestBot",
        owner_name="tester",
        status_interval=0.01,
    )


@pytest.fixture
def occupied_port():
    """A loopback port held by another listening socket."""
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    yield blocker.getsockname()[1]
    blocker.close()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds (or fail after a timeout)."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _wait


# ============================================================================
# Fake transport
# ============================================================================


class FakeHandle:
    """In-memory connection handle that records everything sent through it."""

    def __init__(self, user_id: str | None = "15550001111@s.whatsapp.net"):
        self.user_id = user_id
        self.public = False
        self.listeners: dict[TransportEventType, list[Any]] = defaultdict(list)
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.statuses: list[str] = []
        self.reactions: list[tuple[InboundMessage, str]] = []
        self.closed = False
        self.fail_status = False
        self.fail_send = False
        self.fail_react = False

    def on(self, event: TransportEventType, listener: Any) -> None:
        self.listeners[event].append(listener)

    async def emit(self, event: TransportEventType, payload: Any) -> None:
        for listener in list(self.listeners[event]):
            result = listener(payload)
            if inspect.isawaitable(result):
                await result

    async def emit_open(self) -> None:
        await self.emit(TransportEventType.LIFECYCLE, LifecycleEvent(LifecycleState.OPEN))

    async def emit_close(self, status_code: int | None = 428, reason: str = "") -> None:
        event = LifecycleEvent(LifecycleState.CLOSED, DisconnectCause(status_code, reason))
        await self.emit(TransportEventType.LIFECYCLE, event)

    async def send_message(self, jid: str, content: dict[str, Any]) -> dict[str, Any]:
        if self.fail_send:
            raise RuntimeError("send failed")
        self.sent.append((jid, content))
        return {"key": {"remote_jid": jid}}

    async def update_status(self, text: str) -> None:
        if self.fail_status:
            raise RuntimeError("status failed")
        self.statuses.append(text)

    async def react(self, message: InboundMessage, emoji: str) -> None:
        if self.fail_react:
            raise RuntimeError("react failed")
        self.reactions.append((message, emoji))

    async def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Hands out a new FakeHandle per connect() call."""

    def __init__(self):
        self.handles: list[FakeHandle] = []
        self.calls: list[tuple[CredentialBundle | None, bool]] = []
        self.failures: list[Exception] = []

    async def connect(self, credentials: CredentialBundle | None, *, interactive: bool) -> FakeHandle:
        self.calls.append((credentials, interactive))
        if self.failures:
            raise self.failures.pop(0)
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_handle():
    return FakeHandle()


def make_message(text: str | None = "hello", from_me: bool = False, jid: str = "254700000000@s.whatsapp.net") -> InboundMessage:
    content = {"conversation": text} if text is not None else None
    return InboundMessage(key=MessageKey(remote_jid=jid, id="MSG1", from_me=from_me), content=content)


@pytest.fixture
def message_batch():
    return MessageBatch(messages=[make_message()])


@pytest.fixture
def message_factory():
    return make_message

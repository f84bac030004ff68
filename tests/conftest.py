"""Pytest configuration and shared fixtures.

This module provides:
- FakeWebSocket / FakeConnector doubles injected into ConnectionManager
- A manager factory with short retry delays
- A polling helper for assertions on asynchronous state
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

import pytest

from blitz_remote.client.connection_manager import ConnectionManager
from blitz_remote.shared.models import ConnectionTarget

_PEER_CLOSED = object()


# ============================================================================
# SOCKET DOUBLES
# ============================================================================


class FakeWebSocket:
    """In-memory socket: frames are fed with push(), the peer ends it with drop() or fail()."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.sent: List[str] = []
        self.closed = False
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionError("socket is closed")
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(_PEER_CLOSED)

    def push(self, text: Any) -> None:
        self._inbox.put_nowait(text)

    def drop(self) -> None:
        """Peer closes cleanly."""
        self.closed = True
        self._inbox.put_nowait(_PEER_CLOSED)

    def fail(self, exc: Exception) -> None:
        """Transport breaks mid-stream."""
        self.closed = True
        self._inbox.put_nowait(exc)

    def __aiter__(self) -> "FakeWebSocket":
        return self

    async def __anext__(self) -> Any:
        item = await self._inbox.get()
        if item is _PEER_CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeConnector:
    """Scripted connector. Each entry in `plan` is consumed per call: an exception
    to raise, "hang" to never finish the handshake, or None to succeed."""

    def __init__(self) -> None:
        self.plan: List[Any] = []
        self.urls: List[str] = []
        self.sockets: List[FakeWebSocket] = []
        self.open_at_call: List[int] = []
        self.socket_class = FakeWebSocket

    @property
    def calls(self) -> int:
        return len(self.urls)

    @property
    def last(self) -> FakeWebSocket:
        return self.sockets[-1]

    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        self.open_at_call.append(sum(1 for ws in self.sockets if not ws.closed))
        outcome = self.plan.pop(0) if self.plan else None
        if outcome == "hang":
            await asyncio.Event().wait()
        if isinstance(outcome, BaseException):
            raise outcome
        ws = self.socket_class(url)
        self.sockets.append(ws)
        return ws


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def target() -> ConnectionTarget:
    return ConnectionTarget(host="127.0.0.1", port=8765, path="/ws")


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
async def make_manager(connector: FakeConnector):
    """Build managers wired to the fake connector; all are shut down after the test."""
    managers: List[ConnectionManager] = []

    def factory(**overrides: Any) -> ConnectionManager:
        options = {"max_retries": 5, "retry_delay_s": 0.01, "connect_timeout_s": 1.0}
        options.update(overrides)
        manager = ConnectionManager(connector=connector, **options)
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        await manager.shutdown()


async def _wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    return _wait_until

"""
MODULE OVERVIEW:
The connection lifecycle manager: one outbound WebSocket, a reconnect state
machine with a bounded retry budget, and the hand-off of every inbound frame
to the decoder.

WHAT IS HAPPENING HERE:
States are Disconnected -> Connecting -> Connected. Each socket lives inside a
"session" task tagged with a generation number. `connect()` and `close()` bump
the generation, so a session that has been superseded can never change state
or schedule a retry, even if its close/failure arrives late.

The retry timer is an `asyncio.TimerHandle` kept in RetryState. Every
`connect()`/`close()` cancels it before touching anything else. The delay is
flat (5 s by default) and the attempt counter only resets on a successful
open, a user `connect()` or a `close()`.

All state is mutated on the event loop that owns the manager. The public
methods never block; results show up later on the streams. Only a malformed
URL string passed to `connect()` raises (ValueError), before any state change.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Set, Union

import websockets
from loguru import logger

from blitz_remote.client.decoder import MessageDecoder
from blitz_remote.shared.config import settings
from blitz_remote.shared.errors import ConnectTimeoutError
from blitz_remote.shared.events import StateStreams
from blitz_remote.shared.models import CommandRequest, ConnectionState, ConnectionTarget, ErrorEvent

NORMAL_CLOSURE = 1000

Connector = Callable[[str], Awaitable[Any]]


async def websocket_connector(url: str) -> Any:
    # The handshake timeout is enforced by the manager, not by websockets.
    return await websockets.connect(url, open_timeout=None, ping_interval=20, ping_timeout=20)


@dataclass
class RetryState:
    max_retries: int
    delay_s: float
    last_target: Optional[ConnectionTarget] = None
    attempt: int = 0
    timer: Optional[asyncio.TimerHandle] = None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class ConnectionManager:
    def __init__(
        self,
        streams: Optional[StateStreams] = None,
        *,
        max_retries: Optional[int] = None,
        retry_delay_s: Optional[float] = None,
        connect_timeout_s: Optional[float] = None,
        connector: Optional[Connector] = None,
    ):
        self.streams = streams or StateStreams()
        self.decoder = MessageDecoder(self.streams)
        self.retry = RetryState(
            max_retries=settings.MAX_RETRIES if max_retries is None else max_retries,
            delay_s=settings.RETRY_DELAY_S if retry_delay_s is None else retry_delay_s,
        )
        self.connect_timeout_s = settings.CONNECT_TIMEOUT_S if connect_timeout_s is None else connect_timeout_s
        self._connector = connector or websocket_connector

        self._ws: Any = None
        self._session: Optional[asyncio.Task] = None
        self._generation = 0
        self._background: Set[asyncio.Task] = set()
        self._closing: Set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self.streams.connection_state.value

    @property
    def attempt(self) -> int:
        return self.retry.attempt

    @property
    def last_target(self) -> Optional[ConnectionTarget]:
        return self.retry.last_target

    # ==========================
    # PUBLIC API
    # ==========================
    def connect(self, target: Union[ConnectionTarget, str]) -> None:
        """Open a new connection, superseding any current one. Resets the retry budget."""
        if isinstance(target, str):
            target = ConnectionTarget.from_url(target)
        self.retry.cancel_timer()
        self.retry.attempt = 0
        self._open(target)

    def send(self, command: str) -> None:
        """Fire-and-forget `{"command": ...}`. Silently dropped unless connected."""
        ws = self._ws
        if ws is None or self.state is not ConnectionState.CONNECTED:
            logger.debug(f"event=send_dropped command={command} state={self.state.value}")
            return
        payload = CommandRequest(command=command).model_dump_json()
        self._spawn(self._send(ws, payload))

    def close(self) -> None:
        """User-initiated disconnect. Cancels any pending retry and forgets the target."""
        self.retry.cancel_timer()
        ws, session = self._detach()
        self._generation += 1
        self.retry.last_target = None
        self.retry.attempt = 0
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("event=close reason=user")
        self._retire(ws, session, "Client closing connection")

    async def shutdown(self) -> None:
        """close() and wait for every background task to finish."""
        self.close()
        await asyncio.gather(*list(self._background), return_exceptions=True)

    async def wait_for_state(self, state: ConnectionState, timeout: Optional[float] = None) -> bool:
        if self.state is state:
            return True
        reached = asyncio.Event()

        def on_state(value: ConnectionState) -> None:
            if value is state:
                reached.set()

        unsubscribe = self.streams.connection_state.subscribe(on_state)
        try:
            await asyncio.wait_for(reached.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            unsubscribe()

    def threadsafe(self) -> "ThreadSafeConnection":
        return ThreadSafeConnection(self, asyncio.get_running_loop())

    # ==========================
    # STATE MACHINE
    # ==========================
    def _open(self, target: ConnectionTarget) -> None:
        self.retry.cancel_timer()
        self._retire(*self._detach(), "Starting new connection")
        self._generation += 1
        self.retry.last_target = target
        self._set_state(ConnectionState.CONNECTING)
        logger.info(
            f"event=connect target={target.url} attempt={self.retry.attempt}/{self.retry.max_retries}"
        )
        self._session = self._spawn(self._run_session(target, self._generation))

    def _on_open(self, generation: int, ws: Any) -> None:
        self._ws = ws
        self.retry.attempt = 0
        self._set_state(ConnectionState.CONNECTED)
        self.streams.error_message.publish(None)
        logger.info(f"event=connected target={self.retry.last_target} generation={generation}")

    def _on_closed(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._ws = None
        self._session = None
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info(f"event=closed reason=peer attempt={self.retry.attempt}/{self.retry.max_retries}")
        self._schedule_retry()

    def _on_failure(self, generation: int, exc: BaseException) -> None:
        if generation != self._generation:
            logger.debug(f"event=stale_failure generation={generation} reason='{exc}'")
            return
        self._ws = None
        self._session = None
        self._set_state(ConnectionState.DISCONNECTED)

        budget = f"Retry {self.retry.attempt}/{self.retry.max_retries}"
        if isinstance(exc, (ConnectTimeoutError, TimeoutError, asyncio.TimeoutError)):
            message = f"Connection timed out. {budget}"
        else:
            message = f"Connection failed: {str(exc) or exc.__class__.__name__}. {budget}"
        logger.warning(f"event=failure reason='{exc!r}' attempt={self.retry.attempt}/{self.retry.max_retries}")
        self.streams.error_message.publish(ErrorEvent(message=message))
        self._schedule_retry()

    def _schedule_retry(self) -> None:
        if self.retry.last_target is None or self.retry.attempt >= self.retry.max_retries:
            logger.info(f"event=retry_exhausted attempt={self.retry.attempt}/{self.retry.max_retries}")
            return
        self.retry.attempt += 1
        self.retry.timer = asyncio.get_running_loop().call_later(self.retry.delay_s, self._on_retry_timer)
        logger.info(
            f"event=retry_scheduled attempt={self.retry.attempt}/{self.retry.max_retries} delay_s={self.retry.delay_s}"
        )

    def _on_retry_timer(self) -> None:
        self.retry.timer = None
        if self.retry.last_target is None:
            return
        self._open(self.retry.last_target)

    def _set_state(self, state: ConnectionState) -> None:
        if self.state is not state:
            self.streams.connection_state.publish(state)

    # ==========================
    # SOCKET SESSION
    # ==========================
    async def _run_session(self, target: ConnectionTarget, generation: int) -> None:
        # Every outstanding teardown, not only the one for the previous session,
        # finishes before the next handshake starts.
        if self._closing:
            await asyncio.shield(asyncio.gather(*self._closing, return_exceptions=True))
        if generation != self._generation:
            return

        try:
            ws = await asyncio.wait_for(self._connector(target.url), timeout=self.connect_timeout_s)
        except asyncio.TimeoutError as e:
            self._on_failure(generation, ConnectTimeoutError(f"no handshake within {self.connect_timeout_s}s", e))
            return
        except Exception as e:
            self._on_failure(generation, e)
            return

        if generation != self._generation:
            await self._close_socket(ws, "Superseded")
            return
        self._on_open(generation, ws)

        try:
            async for message in ws:
                if isinstance(message, str):
                    self.decoder.dispatch(message)
                else:
                    logger.debug(f"event=binary_frame_ignored size={len(message)}")
        except Exception as e:
            await self._close_socket(ws, "Connection failed")
            self._on_failure(generation, e)
            return
        self._on_closed(generation)

    def _detach(self) -> tuple[Any, Optional[asyncio.Task]]:
        ws, session = self._ws, self._session
        self._ws = None
        self._session = None
        return ws, session

    def _retire(self, ws: Any, session: Optional[asyncio.Task], reason: str) -> None:
        if ws is None and session is None:
            return
        task = self._spawn(self._teardown(ws, session, reason))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _teardown(self, ws: Any, session: Optional[asyncio.Task], reason: str) -> None:
        if session is not None and not session.done():
            session.cancel()
            await asyncio.gather(session, return_exceptions=True)
        if ws is not None:
            await self._close_socket(ws, reason)

    async def _close_socket(self, ws: Any, reason: str) -> None:
        try:
            await ws.close(code=NORMAL_CLOSURE, reason=reason)
        except Exception as e:
            logger.warning(f"event=close_error reason='{e}'")

    async def _send(self, ws: Any, payload: str) -> None:
        try:
            await ws.send(payload)
            logger.debug(f"event=sent payload={payload}")
        except Exception as e:
            logger.warning(f"event=send_failed payload={payload} reason='{e}'")

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"event=task_error reason='{task.exception()!r}'")


class ThreadSafeConnection:
    """Marshals connect/send/close onto the manager's loop from other threads."""

    def __init__(self, manager: ConnectionManager, loop: asyncio.AbstractEventLoop):
        self._manager = manager
        self._loop = loop

    def connect(self, target: Union[ConnectionTarget, str]) -> None:
        self._loop.call_soon_threadsafe(self._manager.connect, target)

    def send(self, command: str) -> None:
        self._loop.call_soon_threadsafe(self._manager.send, command)

    def close(self) -> None:
        self._loop.call_soon_threadsafe(self._manager.close)

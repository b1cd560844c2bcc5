"""
StreamConnection: reconnecting websocket session.

State machine:

    IDLE -> CONNECTING -> OPEN
    OPEN / CONNECTING --(close or error)--> RECONNECT_SCHEDULED --(delay)--> CONNECTING
    any --(stop)--> CLOSED   (terminal)

Connection and parse errors never stop the session; only stop() does.
Payload events go to `events`, connection notices to `notices`; both are
EventChannels closed by stop().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncContextManager, Callable, Generic, Optional, TypeVar

import websockets
from websockets.exceptions import ConnectionClosed

from futures_terminal.core.channel import EventChannel
from futures_terminal.core.json_utils import loads
from futures_terminal.errors import ConnectionLoss
from futures_terminal.infra.logging_cfg import log_event
from futures_terminal.market_data.events import StreamNotice, StreamState
from futures_terminal.monitoring.metrics import TerminalMetrics

log = logging.getLogger("futures_terminal")

T = TypeVar("T")

Connector = Callable[[str], AsyncContextManager[Any]]

RECONNECT_DELAY_SEC = 3.0


def default_connector(url: str) -> AsyncContextManager[Any]:
    return websockets.connect(url, ping_interval=20, ping_timeout=20)


class StreamConnection(Generic[T]):
    """
    Base session. Subclasses provide url() and handle_message().

    Usage:
        stream = TickerStream("BTCUSDT", ws_base_url)
        await stream.start()
        async for tick in stream.events:
            ...
        await stream.stop()
    """

    def __init__(
        self,
        name: str,
        reconnect_delay: float = RECONNECT_DELAY_SEC,
        connector: Optional[Connector] = None,
        metrics: Optional[TerminalMetrics] = None,
        queue_size: int = EventChannel.DEFAULT_QUEUE_SIZE,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.name = name
        self.reconnect_delay = reconnect_delay
        self._connector = connector or default_connector
        self.metrics = metrics or TerminalMetrics()
        self._sleep = sleep
        self.events: EventChannel[T] = EventChannel(name, maxsize=queue_size)
        self.notices: EventChannel[StreamNotice] = EventChannel(f"{name}:notices", maxsize=100)
        self.state = StreamState.IDLE
        self.active = False
        self.connect_count = 0
        self.reconnect_count = 0
        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None

    # ----- subclass hooks -----

    def url(self) -> str:
        raise NotImplementedError

    def handle_message(self, data: Any) -> None:
        raise NotImplementedError

    async def prepare(self) -> None:
        """Runs once before the first connect (e.g. obtain a session token)."""

    # ----- lifecycle -----

    @property
    def is_open(self) -> bool:
        return self.state == StreamState.OPEN

    async def start(self) -> None:
        if self.state == StreamState.CLOSED:
            raise RuntimeError(f"stream {self.name} is closed; create a new session")
        if self._task is not None:
            return
        self.active = True
        try:
            await self.prepare()
        except Exception:
            self.active = False
            raise
        if not self.active:  # stopped while preparing
            return
        self._task = asyncio.create_task(self._run(), name=f"stream-{self.name}")

    async def stop(self) -> None:
        """Terminal exit: no reconnection after this, pending delay cancelled, socket closed."""
        self.active = False
        ws = self._ws
        if ws is not None:
            await ws.close()
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._ws = None
        self._set_state(StreamState.CLOSED)
        self.metrics.stream_connected.labels(stream=self.name).set(0)
        self.events.close()
        self.notices.close()

    async def force_reconnect(self) -> None:
        """Close the current socket; the run loop reconnects after the usual delay."""
        ws = self._ws
        if ws is not None:
            await ws.close()

    async def _run(self) -> None:
        while self.active:
            self._set_state(StreamState.CONNECTING)
            url = self.url()
            try:
                async with self._connector(url) as ws:
                    self._ws = ws
                    self.connect_count += 1
                    self._set_state(StreamState.OPEN)
                    self.metrics.stream_connected.labels(stream=self.name).set(1)
                    log_event(log, "stream_open", stream=self.name, connects=self.connect_count)
                    async for raw in ws:
                        self._dispatch(raw)
                    if self.active:
                        raise ConnectionLoss(f"{self.name} closed by peer")
            except (ConnectionLoss, ConnectionClosed) as exc:
                log_event(log, "stream_connection_lost", level=logging.WARNING, stream=self.name, err=str(exc))
            except Exception as exc:
                log_event(log, "stream_error", level=logging.WARNING, stream=self.name, err=repr(exc))
            finally:
                self._ws = None
                self.metrics.stream_connected.labels(stream=self.name).set(0)

            if not self.active:
                break
            self.reconnect_count += 1
            self.metrics.stream_reconnects.labels(stream=self.name).inc()
            self._set_state(StreamState.RECONNECT_SCHEDULED)
            log_event(
                log,
                "stream_reconnect_scheduled",
                level=logging.WARNING,
                stream=self.name,
                delay_sec=self.reconnect_delay,
            )
            await self._sleep(self.reconnect_delay)

    def _dispatch(self, raw: Any) -> None:
        try:
            data = loads(raw)
            self.handle_message(data)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            log_event(log, "stream_parse_error", level=logging.WARNING, stream=self.name, err=str(exc))

    def _set_state(self, state: StreamState) -> None:
        if state == self.state:
            return
        self.state = state
        self.notices.publish(StreamNotice(stream=self.name, kind="state", state=state))

    def publish(self, event: T) -> None:
        if not self.events.publish(event):
            self.metrics.stream_events_dropped.labels(stream=self.name).inc()

"""
Pytest configuration and fixtures.

Shared fakes: a scripted websocket connector, a recording sleep, and a
Settings factory that does not read the environment.
"""

import asyncio
import contextlib
from typing import Any, Callable, List, Optional

import httpx
import pytest

from futures_terminal.config.config import Settings
from futures_terminal.core.json_utils import dumps
from futures_terminal.execution.models import Credentials
from futures_terminal.infra.rest_client import RestClient
from futures_terminal.monitoring.metrics import TerminalMetrics


def make_settings(**overrides: Any) -> Settings:
    values = dict(
        mode="simulated",
        api_key=None,
        api_secret=None,
        base_url="https://testnet.binancefuture.com",
        ws_base_url="wss://stream.binancefuture.com/ws",
        symbol="BTCUSDT",
        recv_window_ms=5000,
        http_timeout=2.0,
        reconnect_delay_sec=0.01,
        listen_key_renew_sec=3000.0,
        listen_key_validity_sec=3600.0,
        listen_key_max_failures=3,
        inter_order_delay_sec=0.0,
        sim_latency_sec=0.0,
        sim_cancel_latency_sec=0.0,
        sim_failure_rate=0.0,
        sim_fill_delay_sec=0.0,
        ticker_debounce_sec=0.0,
        trading_rules_path="does-not-exist.yaml",
        log_level="DEBUG",
        log_file=None,
        metrics_port=0,
        stream_queue_size=100,
    )
    values.update(overrides)
    return Settings(**values)


class FakeWebSocket:
    """In-memory socket: feed() queues a frame, end() simulates a peer close."""

    def __init__(self) -> None:
        self._frames: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def feed(self, message: Any) -> None:
        self._frames.put_nowait(message if isinstance(message, str) else dumps(message))

    def end(self) -> None:
        self._frames.put_nowait(None)

    async def close(self) -> None:
        self.closed = True
        self._frames.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        frame = await self._frames.get()
        if frame is None:
            raise StopAsyncIteration
        return frame


class FakeConnector:
    """Callable stand-in for websockets.connect. The first `fail_first` connects raise."""

    def __init__(self, fail_first: int = 0) -> None:
        self.urls: List[str] = []
        self.sockets: List[FakeWebSocket] = []
        self.fail_first = fail_first

    def __call__(self, url: str):
        return self._connect(url)

    @contextlib.asynccontextmanager
    async def _connect(self, url: str):
        self.urls.append(url)
        if self.fail_first > 0:
            self.fail_first -= 1
            raise OSError("connection refused")
        ws = FakeWebSocket()
        self.sockets.append(ws)
        yield ws

    @property
    def current(self) -> Optional[FakeWebSocket]:
        return self.sockets[-1] if self.sockets else None


class RecordingSleep:
    """Records requested delays and yields control without waiting."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


def mock_rest(handler: Callable[[httpx.Request], httpx.Response]) -> RestClient:
    client = httpx.AsyncClient(
        base_url="https://testnet.binancefuture.com",
        transport=httpx.MockTransport(handler),
    )
    return RestClient("https://testnet.binancefuture.com", client=client)


def query_of(request: httpx.Request) -> str:
    return request.url.query.decode()


@pytest.fixture
def metrics():
    return TerminalMetrics()


@pytest.fixture
def credentials():
    return Credentials(api_key="test-key", api_secret="test-secret")


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()

"""
Terminal: owner of the execution context.

Wires Validator -> OrderExecutor for single orders, GridGenerator ->
SequentialDispatcher for grids, and runs the ticker and user streams. The
execution mode is an explicit value held here and captured once per
submission; it cannot change while a submission or dispatch is in flight.

Order updates (from the user stream in live mode, synthesized in simulated
mode) are published on `order_updates` for the log sink and logged at a
level derived from the order status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, Set

from futures_terminal.config.config import Settings
from futures_terminal.config.trading_rules import TradingRules, load_trading_rules
from futures_terminal.core.channel import EventChannel
from futures_terminal.errors import CredentialError, ModeLockedError, TerminalError, ValidationError
from futures_terminal.execution.dispatcher import SequentialDispatcher
from futures_terminal.execution.models import (
    CancelResult,
    Credentials,
    DispatchReport,
    ExecutionMode,
    Live,
    OrderRequest,
    OrderResult,
    Simulated,
    mode_name,
)
from futures_terminal.execution.order_executor import OrderExecutor
from futures_terminal.infra.logging_cfg import level_for_status, log_event
from futures_terminal.infra.rest_client import RestClient
from futures_terminal.market_data.events import OrderUpdate
from futures_terminal.market_data.stream_connection import Connector
from futures_terminal.market_data.ticker_stream import TickerStream
from futures_terminal.market_data.user_stream import UserStream
from futures_terminal.monitoring.metrics import TerminalMetrics
from futures_terminal.risk.validator import Validator
from futures_terminal.strategy.grid_generator import GridGenerator
from futures_terminal.utils import parse_decimal

log = logging.getLogger("futures_terminal")

MIN_SYMBOL_LENGTH = 3


def mode_from_settings(cfg: Settings) -> ExecutionMode:
    if cfg.is_live:
        return Live(Credentials(cfg.api_key or "", cfg.api_secret or ""))
    return Simulated(
        latency_sec=cfg.sim_latency_sec,
        cancel_latency_sec=cfg.sim_cancel_latency_sec,
        failure_rate=cfg.sim_failure_rate,
    )


class Terminal:
    def __init__(
        self,
        cfg: Settings,
        rules: Optional[TradingRules] = None,
        rest: Optional[RestClient] = None,
        metrics: Optional[TerminalMetrics] = None,
        connector: Optional[Connector] = None,
        mode: Optional[ExecutionMode] = None,
        sleep: Callable[[float], Coroutine[Any, Any, None]] = asyncio.sleep,
    ) -> None:
        self.cfg = cfg
        self.metrics = metrics or TerminalMetrics()
        self.rules = rules or load_trading_rules(cfg.trading_rules_path)
        self.validator = Validator(self.rules)
        self.rest = rest or RestClient(cfg.base_url, timeout=cfg.http_timeout, recv_window_ms=cfg.recv_window_ms)
        self.executor = OrderExecutor(self.rest, self.metrics, sleep=sleep)
        self.dispatcher = SequentialDispatcher(self.executor, cfg.inter_order_delay_sec, sleep=sleep)
        self.grid = GridGenerator()
        self.order_updates: EventChannel[OrderUpdate] = EventChannel("order_updates", maxsize=cfg.stream_queue_size)
        self.ticker: Optional[TickerStream] = None
        self.user_stream: Optional[UserStream] = None
        self.symbol: Optional[str] = None
        self._mode: ExecutionMode = mode or mode_from_settings(cfg)
        self._connector = connector
        self._sleep = sleep
        self._in_flight = 0
        self._symbol_task: Optional[asyncio.Task] = None
        self._switch_lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    # ========== Execution context ==========

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def busy(self) -> bool:
        return self._in_flight > 0

    async def switch_mode(self, mode: ExecutionMode) -> None:
        """Change mode and start/stop the user stream to match."""
        if self.busy:
            raise ModeLockedError()
        self._mode = mode
        log_event(log, "mode_switched", mode=mode_name(mode))
        await self._sync_user_stream()

    @property
    def last_price(self) -> Optional[str]:
        return self.ticker.last_price if self.ticker else None

    # ========== Orders ==========

    async def submit_order(self, order: OrderRequest) -> OrderResult:
        error = self.validator.check_order(order)
        if error:
            log_event(log, "order_rejected_locally", level=logging.ERROR, err=error.message, **order.describe())
            raise error
        mode = self._mode
        self._in_flight += 1
        try:
            result = await self.executor.submit(mode, order)
        finally:
            self._in_flight -= 1
        if isinstance(mode, Simulated):
            self._spawn(self._simulate_fill(order))
        return result

    async def deploy_grid(
        self,
        symbol: str,
        min_price: str,
        max_price: str,
        level_count: int,
        quantity: str,
        reference_price: Optional[str] = None,
    ) -> DispatchReport:
        symbol = symbol.strip().upper()
        error = self.validator.check_grid_params(symbol, min_price, max_price, quantity)
        error = error or self.validator.check_grid_levels(symbol, min_price, max_price, level_count)
        if error:
            log_event(log, "grid_rejected_locally", level=logging.ERROR, symbol=symbol, err=error.message)
            raise error

        reference = reference_price or (self.last_price if symbol == self.symbol else None)
        ref_value = parse_decimal(reference)
        if ref_value is None or ref_value <= 0:
            raise ValidationError("Reference price is required (no live price available).", field="reference_price")

        mode = self._mode
        if isinstance(mode, Live) and not mode.credentials.complete:
            raise CredentialError()

        orders = self.grid.generate(
            min_price,
            max_price,
            level_count,
            reference,
            quantity,
            self.rules.get(symbol),
            symbol,
        )
        log_event(
            log,
            "grid_generated",
            symbol=symbol,
            levels=level_count,
            orders=len(orders),
            reference=reference,
        )
        self._in_flight += 1
        try:
            return await self.dispatcher.dispatch(orders, mode)
        finally:
            self._in_flight -= 1

    async def cancel_order(self, symbol: str, order_ref: str) -> CancelResult:
        mode = self._mode
        self._in_flight += 1
        try:
            result = await self.executor.cancel(mode, symbol, order_ref)
        finally:
            self._in_flight -= 1
        if isinstance(mode, Simulated):
            self._emit_update(OrderUpdate(
                symbol=result.symbol,
                client_order_id=result.client_order_id,
                side=result.side,
                type=result.type,
                status="CANCELED",
                original_qty=result.orig_qty,
                executed_qty=result.executed_qty,
                avg_price="0",
                simulated=True,
            ))
        return result

    async def _simulate_fill(self, order: OrderRequest) -> None:
        """Simulated mode has no user stream; report the order FILLED after a short delay."""
        await self._sleep(self.cfg.sim_fill_delay_sec)
        price = self.last_price if order.symbol.upper() == self.symbol else None
        self._emit_update(OrderUpdate(
            symbol=order.symbol.upper(),
            client_order_id="",
            side=order.side.value,
            type=order.type.value,
            status="FILLED",
            original_qty=order.quantity,
            executed_qty=order.quantity,
            avg_price=price or order.price or "MARKET",
            simulated=True,
        ))

    def _emit_update(self, update: OrderUpdate) -> None:
        self.order_updates.publish(update)
        log_event(log, "order_update", level=level_for_status(update.status), **update.summary())

    # ========== Streams ==========

    async def start(self) -> None:
        if self.cfg.metrics_port > 0:
            self.metrics.serve(self.cfg.metrics_port)
        self.set_symbol(self.cfg.symbol)
        await self._sync_user_stream()

    def set_symbol(self, symbol: str) -> None:
        """Debounced ticker resubscription; only the last symbol within the window is used."""
        if self._symbol_task is not None and not self._symbol_task.done():
            self._symbol_task.cancel()
        self._symbol_task = asyncio.create_task(self._switch_symbol(symbol.strip().upper()))

    async def wait_symbol(self) -> None:
        """Wait for a pending set_symbol() to settle."""
        if self._symbol_task is not None:
            await asyncio.gather(self._symbol_task, return_exceptions=True)

    async def _switch_symbol(self, symbol: str) -> None:
        await self._sleep(self.cfg.ticker_debounce_sec)
        # past the debounce a newer set_symbol() must not interrupt the swap
        await asyncio.shield(self._spawn(self._replace_ticker(symbol)))

    async def _replace_ticker(self, symbol: str) -> None:
        async with self._switch_lock:
            if symbol == self.symbol and self.ticker is not None:
                return
            old, self.ticker = self.ticker, None
            if old is not None:
                await old.stop()
            self.symbol = symbol
            if len(symbol) < MIN_SYMBOL_LENGTH:
                return
            stream = TickerStream(symbol, self.cfg.ws_base_url, **self._stream_kwargs())
            self.ticker = stream
            await stream.start()
            self._spawn(self._pump_ticks(stream))

    async def _pump_ticks(self, stream: TickerStream) -> None:
        async for tick in stream.events:
            log_event(log, "price_tick", level=logging.DEBUG, symbol=tick.symbol, price=tick.price)

    async def _sync_user_stream(self) -> None:
        mode = self._mode
        wanted = isinstance(mode, Live) and mode.credentials.complete
        if not wanted:
            if self.user_stream is not None:
                stream, self.user_stream = self.user_stream, None
                await stream.stop()
            return
        if self.user_stream is not None:
            if self.user_stream.credentials == mode.credentials:
                return
            stream, self.user_stream = self.user_stream, None
            await stream.stop()

        log_event(log, "user_stream_init")
        stream = UserStream(
            self.rest,
            mode.credentials,
            self.cfg.ws_base_url,
            renew_interval=self.cfg.listen_key_renew_sec,
            max_renew_failures=self.cfg.listen_key_max_failures,
            **self._stream_kwargs(),
        )
        try:
            await stream.start()
        except TerminalError as exc:
            log_event(
                log,
                "user_stream_failed",
                level=logging.ERROR,
                err=str(exc),
                hint="Failed to connect to User Stream. Check API Key/Network.",
            )
            return
        self.user_stream = stream
        self._spawn(self._pump_user_updates(stream))
        log_event(log, "user_stream_connected", level=logging.INFO)

    async def _pump_user_updates(self, stream: UserStream) -> None:
        async for update in stream.events:
            self._emit_update(update)

    def _stream_kwargs(self) -> dict:
        return {
            "reconnect_delay": self.cfg.reconnect_delay_sec,
            "connector": self._connector,
            "metrics": self.metrics,
            "queue_size": self.cfg.stream_queue_size,
        }

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def close(self) -> None:
        if self._symbol_task is not None:
            self._symbol_task.cancel()
            await asyncio.gather(self._symbol_task, return_exceptions=True)
        async with self._switch_lock:
            if self.ticker is not None:
                await self.ticker.stop()
                self.ticker = None
        if self.user_stream is not None:
            await self.user_stream.stop()
            self.user_stream = None
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*self._background, return_exceptions=True)
        self.order_updates.close()
        await self.rest.close()
        log_event(log, "terminal_closed")

"""
OrderExecutor: submit and cancel a single order in simulated or live mode.

The mode is a tagged value (Simulated | Live) resolved once at the top of
each call. Live mode signs through RestClient; simulated mode synthesizes an
exchange-shaped response after a fixed latency.

Cancel target heuristic: an all-digit reference is an exchange order id,
anything else is the original client order id. A numeric client order id is
therefore indistinguishable from an order id; this is a known limitation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from futures_terminal.errors import CredentialError, NetworkError, ValidationError
from futures_terminal.execution.models import (
    EXCHANGE_ORDER_TYPES,
    CancelResult,
    ExecutionMode,
    Live,
    OrderRequest,
    OrderResult,
    OrderType,
    Simulated,
    mode_name,
)
from futures_terminal.infra.logging_cfg import SUCCESS, log_event
from futures_terminal.infra.rest_client import RestClient
from futures_terminal.monitoring.metrics import TerminalMetrics
from futures_terminal.utils import now_ms

log = logging.getLogger("futures_terminal")

TIME_IN_FORCE = "GTC"
SIMULATED_FAILURE_MESSAGE = "Simulated network error or insufficient balance"


def is_exchange_order_id(order_ref: str) -> bool:
    return order_ref.isascii() and order_ref.isdigit()


class OrderExecutor:
    def __init__(
        self,
        rest: Optional[RestClient] = None,
        metrics: Optional[TerminalMetrics] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.rest = rest
        self.metrics = metrics or TerminalMetrics()
        self._sleep = sleep

    # ========== Submit ==========

    async def submit(self, mode: ExecutionMode, order: OrderRequest) -> OrderResult:
        mode_label = mode_name(mode)
        log_event(log, "order_intent", mode=mode_label, **order.describe())
        try:
            if isinstance(mode, Live):
                result = await self._submit_live(mode, order)
            else:
                result = await self._submit_simulated(mode, order)
        except Exception as exc:
            self.metrics.orders_failed.labels(symbol=order.symbol.upper(), reason=type(exc).__name__).inc()
            raise
        self.metrics.orders_submitted.labels(symbol=result.symbol, side=order.side.value, mode=mode_label).inc()
        log_event(
            log,
            "order_submit_ack",
            level=SUCCESS,
            mode=mode_label,
            order_id=result.order_id,
            client_order_id=result.client_order_id,
            symbol=result.symbol,
            status=result.status,
        )
        return result

    def build_order_params(self, order: OrderRequest) -> Dict[str, str]:
        """Exchange parameters in signing order. Raises ValidationError before anything is signed."""
        params = self._rest().base_params(
            symbol=order.symbol.upper(),
            side=order.side.value,
            quantity=order.quantity,
        )
        params["type"] = EXCHANGE_ORDER_TYPES[order.type]
        if order.type == OrderType.LIMIT:
            if not order.price:
                raise ValidationError("Price is required for LIMIT orders", field="price")
            params["price"] = order.price
            params["timeInForce"] = TIME_IN_FORCE
        elif order.type == OrderType.STOP_LIMIT:
            if not order.price:
                raise ValidationError("Price is required for STOP_LIMIT orders", field="price")
            if not order.stop_price:
                raise ValidationError("Stop Price is required for STOP_LIMIT orders", field="stop_price")
            params["price"] = order.price
            params["stopPrice"] = order.stop_price
            params["timeInForce"] = TIME_IN_FORCE
        return params

    async def _submit_live(self, mode: Live, order: OrderRequest) -> OrderResult:
        self._require_credentials(mode)
        params = self.build_order_params(order)
        data = await self._rest().place_order(params, mode.credentials)
        return OrderResult.from_exchange(data)

    async def _submit_simulated(self, mode: Simulated, order: OrderRequest) -> OrderResult:
        await self._sleep(mode.latency_sec)
        self._maybe_inject_failure(mode)
        ts = now_ms()
        return OrderResult(
            order_id=mode.rng.randrange(1_000_000_000),
            client_order_id=f"web_{ts}",
            symbol=order.symbol.upper(),
            side=order.side.value,
            type=order.type.value,
            status="NEW",
            price=order.price or "0",
            avg_price="0.00000",
            orig_qty=order.quantity,
            executed_qty="0",
            stop_price=order.stop_price or "0",
            time_in_force=order.time_in_force or TIME_IN_FORCE,
            update_time=ts,
        )

    # ========== Cancel ==========

    async def cancel(self, mode: ExecutionMode, symbol: str, order_ref: str) -> CancelResult:
        mode_label = mode_name(mode)
        order_ref = (order_ref or "").strip()
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol is required to cancel an order.", field="symbol")
        if not order_ref:
            raise ValidationError("Order ID or Client Order ID is required.", field="order_ref")
        log_event(log, "cancel_intent", mode=mode_label, symbol=symbol.upper(), order_ref=order_ref)

        try:
            if isinstance(mode, Live):
                result = await self._cancel_live(mode, symbol, order_ref)
            else:
                result = await self._cancel_simulated(mode, symbol, order_ref)
        except Exception as exc:
            self.metrics.orders_failed.labels(symbol=symbol.strip().upper(), reason=type(exc).__name__).inc()
            raise

        self.metrics.orders_cancelled.labels(symbol=result.symbol, mode=mode_label).inc()
        log_event(
            log,
            "order_cancel_ack",
            level=SUCCESS,
            mode=mode_label,
            order_id=result.order_id,
            client_order_id=result.client_order_id,
            symbol=result.symbol,
            status=result.status,
        )
        return result

    def build_cancel_params(self, symbol: str, order_ref: str) -> Dict[str, str]:
        params = self._rest().base_params(symbol=symbol.strip().upper())
        if is_exchange_order_id(order_ref):
            params["orderId"] = order_ref
        else:
            params["origClientOrderId"] = order_ref
        return params

    async def _cancel_live(self, mode: Live, symbol: str, order_ref: str) -> CancelResult:
        self._require_credentials(mode)
        params = self.build_cancel_params(symbol, order_ref)
        data = await self._rest().cancel_order(params, mode.credentials)
        return CancelResult.from_exchange(data)

    async def _cancel_simulated(self, mode: Simulated, symbol: str, order_ref: str) -> CancelResult:
        await self._sleep(mode.cancel_latency_sec)
        self._maybe_inject_failure(mode)
        ts = now_ms()
        numeric = is_exchange_order_id(order_ref)
        return CancelResult(
            order_id=int(order_ref) if numeric else mode.rng.randrange(1_000_000_000),
            client_order_id=f"web_{ts}" if numeric else order_ref,
            symbol=symbol.strip().upper(),
            status="CANCELED",
            update_time=ts,
        )

    # ========== Helpers ==========

    def _rest(self) -> RestClient:
        if self.rest is None:
            raise RuntimeError("live execution requires a RestClient")
        return self.rest

    @staticmethod
    def _require_credentials(mode: Live) -> None:
        if not mode.credentials.complete:
            raise CredentialError()

    @staticmethod
    def _maybe_inject_failure(mode: Simulated) -> None:
        if mode.failure_rate > 0 and mode.rng.random() < mode.failure_rate:
            raise NetworkError(SIMULATED_FAILURE_MESSAGE)

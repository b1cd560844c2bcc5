"""
SequentialDispatcher: submit a batch of orders one at a time.

Order i+1 is never started before order i has succeeded or failed. A fixed
delay separates consecutive attempts whatever their outcome, to stay under
the exchange's order rate limits during a grid deployment. Failures are
counted and logged; the batch always runs to the end and nothing already
placed is rolled back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence

from futures_terminal.errors import TerminalError
from futures_terminal.execution.models import (
    DispatchOutcome,
    DispatchReport,
    ExecutionMode,
    OrderRequest,
    mode_name,
)
from futures_terminal.execution.order_executor import OrderExecutor
from futures_terminal.infra.logging_cfg import SUCCESS, log_event

log = logging.getLogger("futures_terminal")

INTER_ORDER_DELAY_SEC = 0.2


class SequentialDispatcher:
    def __init__(
        self,
        executor: OrderExecutor,
        inter_order_delay: float = INTER_ORDER_DELAY_SEC,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.executor = executor
        self.inter_order_delay = inter_order_delay
        self._sleep = sleep

    async def dispatch(self, orders: Sequence[OrderRequest], mode: ExecutionMode) -> DispatchReport:
        report = DispatchReport()
        mode_label = mode_name(mode)
        self.executor.metrics.dispatch_batches.labels(mode=mode_label).inc()
        log_event(log, "dispatch_start", mode=mode_label, count=len(orders))

        for index, order in enumerate(orders):
            if index > 0 and self.inter_order_delay > 0:
                await self._sleep(self.inter_order_delay)
            outcome = DispatchOutcome(index=index, order=order)
            try:
                outcome.result = await self.executor.submit(mode, order)
            except TerminalError as exc:
                outcome.error = str(exc)
                report.fail_count += 1
                log_event(
                    log,
                    "dispatch_order_failed",
                    level=logging.ERROR,
                    index=index,
                    side=order.side.value,
                    price=order.price,
                    err=str(exc),
                )
            else:
                report.success_count += 1
                log_event(
                    log,
                    "dispatch_order_placed",
                    level=SUCCESS,
                    index=index,
                    side=order.side.value,
                    price=order.price,
                    symbol=order.symbol,
                )
            report.outcomes.append(outcome)

        log_event(
            log,
            "dispatch_complete",
            mode=mode_label,
            success=report.success_count,
            failed=report.fail_count,
        )
        return report

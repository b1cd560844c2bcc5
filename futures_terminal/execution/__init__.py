"""
Execution layer: order types, request signing, single-order execution and
sequential batch dispatch.

OrderExecutor and SequentialDispatcher live in their own modules
(`execution.order_executor`, `execution.dispatcher`).
"""

from futures_terminal.execution.models import (
    CancelResult,
    Credentials,
    DispatchOutcome,
    DispatchReport,
    ExecutionMode,
    Live,
    OrderRequest,
    OrderResult,
    OrderSide,
    OrderType,
    Simulated,
    mode_name,
)
from futures_terminal.execution.signer import build_query, sign, signed_query

__all__ = [
    "CancelResult",
    "Credentials",
    "DispatchOutcome",
    "DispatchReport",
    "ExecutionMode",
    "Live",
    "OrderRequest",
    "OrderResult",
    "OrderSide",
    "OrderType",
    "Simulated",
    "mode_name",
    "build_query",
    "sign",
    "signed_query",
]

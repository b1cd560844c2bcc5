"""
Order, result and execution-mode types shared by the executor, dispatcher
and grid generator.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from futures_terminal.utils import mask_secret


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP_LIMIT = "STOP_LIMIT"


# Internal order type -> exchange order type
EXCHANGE_ORDER_TYPES = {
    OrderType.MARKET: "MARKET",
    OrderType.LIMIT: "LIMIT",
    OrderType.STOP_LIMIT: "STOP",
}


@dataclass(frozen=True)
class OrderRequest:
    """A single order as entered. Quantities and prices stay as typed strings."""
    symbol: str
    side: OrderSide
    type: OrderType
    quantity: str
    price: Optional[str] = None
    stop_price: Optional[str] = None
    time_in_force: Optional[str] = None

    def describe(self) -> dict:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.type.value,
            "quantity": self.quantity,
            "price": self.price,
            "stop_price": self.stop_price,
        }


def _str(data: Mapping[str, Any], key: str, default: str = "0") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class OrderResult:
    order_id: Optional[int]
    client_order_id: str
    symbol: str
    side: str
    type: str
    status: str
    price: str = "0"
    avg_price: str = "0"
    orig_qty: str = "0"
    executed_qty: str = "0"
    stop_price: str = "0"
    time_in_force: str = "GTC"
    update_time: Optional[int] = None

    @classmethod
    def from_exchange(cls, data: Mapping[str, Any]) -> "OrderResult":
        return cls(
            order_id=_int(data, "orderId"),
            client_order_id=_str(data, "clientOrderId", ""),
            symbol=_str(data, "symbol", ""),
            side=_str(data, "side", ""),
            type=_str(data, "type", ""),
            status=_str(data, "status", ""),
            price=_str(data, "price"),
            avg_price=_str(data, "avgPrice"),
            orig_qty=_str(data, "origQty"),
            executed_qty=_str(data, "executedQty"),
            stop_price=_str(data, "stopPrice"),
            time_in_force=_str(data, "timeInForce", "GTC"),
            update_time=_int(data, "updateTime"),
        )


@dataclass(frozen=True)
class CancelResult:
    order_id: Optional[int]
    client_order_id: str
    symbol: str
    status: str
    orig_qty: str = "0"
    executed_qty: str = "0"
    type: str = ""
    side: str = ""
    update_time: Optional[int] = None

    @classmethod
    def from_exchange(cls, data: Mapping[str, Any]) -> "CancelResult":
        return cls(
            order_id=_int(data, "orderId"),
            client_order_id=_str(data, "clientOrderId", ""),
            symbol=_str(data, "symbol", ""),
            status=_str(data, "status", ""),
            orig_qty=_str(data, "origQty"),
            executed_qty=_str(data, "executedQty"),
            type=_str(data, "type", ""),
            side=_str(data, "side", ""),
            update_time=_int(data, "updateTime"),
        )


@dataclass(frozen=True)
class Credentials:
    """API key pair. Held in memory only; repr never shows the secret."""
    api_key: str
    api_secret: str

    @property
    def complete(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)

    def __repr__(self) -> str:
        return f"Credentials(api_key={mask_secret(self.api_key)!r}, api_secret='***')"


@dataclass(frozen=True)
class Simulated:
    """
    Simulated execution. Orders never leave the process.

    failure_rate injects NetworkError for test environments; 0.0 keeps the
    always-succeed behaviour.
    """
    latency_sec: float = 0.8
    cancel_latency_sec: float = 0.6
    failure_rate: float = 0.0
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    @property
    def is_live(self) -> bool:
        return False


@dataclass(frozen=True)
class Live:
    """Live execution against the exchange with the given credentials."""
    credentials: Credentials

    @property
    def is_live(self) -> bool:
        return True


ExecutionMode = Union[Simulated, Live]


def mode_name(mode: ExecutionMode) -> str:
    return "live" if isinstance(mode, Live) else "simulated"


@dataclass
class DispatchOutcome:
    """Outcome of one order inside a batch."""
    index: int
    order: OrderRequest
    result: Optional[OrderResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class DispatchReport:
    success_count: int = 0
    fail_count: int = 0
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.fail_count

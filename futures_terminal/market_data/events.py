"""
Events published by stream sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from futures_terminal.utils import now_ms


class StreamState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    RECONNECT_SCHEDULED = "RECONNECT_SCHEDULED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class PriceTick:
    symbol: str
    price: str  # mid price, 4 decimals below 10 else 2
    bid: float
    ask: float
    ts_ms: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class OrderUpdate:
    symbol: str
    client_order_id: str
    side: str
    type: str
    status: str
    original_qty: str
    executed_qty: str
    avg_price: str
    simulated: bool = False

    @classmethod
    def from_event(cls, payload: Mapping[str, Any]) -> "OrderUpdate":
        """Normalize the `o` object of an ORDER_TRADE_UPDATE event."""
        return cls(
            symbol=str(payload.get("s", "")),
            client_order_id=str(payload.get("c", "")),
            side=str(payload.get("S", "")),
            type=str(payload.get("o", "")),
            status=str(payload.get("X", "")),
            original_qty=str(payload.get("q", "0")),
            executed_qty=str(payload.get("z", "0")),
            avg_price=str(payload.get("ap", "0")),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side,
            "type": self.type,
            "status": self.status,
            "filled": f"{self.executed_qty} / {self.original_qty}",
            "price": self.avg_price,
            "client_order_id": self.client_order_id,
            "simulated": self.simulated,
        }


@dataclass(frozen=True)
class StreamNotice:
    """Connection-level notice: state changes and listen key renewal outcomes."""
    stream: str
    kind: str
    state: Optional[StreamState] = None
    detail: Optional[str] = None
    ts_ms: int = field(default_factory=now_ms)

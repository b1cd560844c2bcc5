"""
Public best bid/ask stream for one symbol, published as mid-price ticks.
"""

from __future__ import annotations

from typing import Any, Optional

from futures_terminal.market_data.events import PriceTick
from futures_terminal.market_data.stream_connection import StreamConnection


def format_mid(mid: float) -> str:
    """4 decimals below 10, otherwise 2."""
    return f"{mid:.4f}" if mid < 10 else f"{mid:.2f}"


class TickerStream(StreamConnection[PriceTick]):
    def __init__(self, symbol: str, ws_base_url: str, **kwargs: Any) -> None:
        self.symbol = symbol.strip().upper()
        super().__init__(name=f"ticker:{self.symbol}", **kwargs)
        self.ws_base_url = ws_base_url.rstrip("/")
        self.last_price: Optional[str] = None

    def url(self) -> str:
        # stream names are lowercase
        return f"{self.ws_base_url}/{self.symbol.lower()}@bookTicker"

    def handle_message(self, data: Any) -> None:
        if not isinstance(data, dict) or data.get("e") != "bookTicker":
            return
        if not data.get("b") or not data.get("a"):
            return
        bid = float(data["b"])
        ask = float(data["a"])
        price = format_mid((bid + ask) / 2)
        self.last_price = price
        self.publish(PriceTick(symbol=self.symbol, price=price, bid=bid, ask=ask))

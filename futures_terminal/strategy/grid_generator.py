"""
GridGenerator - evenly spaced ladder of limit orders across a price range.

Pure calculation: no I/O, no state. Levels below the reference price become
BUY orders, levels at or above it become SELL orders. A level within one
price tick of the reference is dropped (no order exactly at market).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Union

from futures_terminal.config.trading_rules import TradingRule
from futures_terminal.errors import ValidationError
from futures_terminal.execution.models import OrderRequest, OrderSide, OrderType
from futures_terminal.utils import parse_decimal, precision_unit

Number = Union[str, int, float, Decimal]


def _to_decimal(value: Number, name: str) -> Decimal:
    parsed = parse_decimal(str(value))
    if parsed is None:
        raise ValidationError(f"{name} must be a number.", field=name)
    return parsed


class GridGenerator:
    """
    Builds a GridPlan: an ascending list of LIMIT OrderRequests.

    Thread-safety: stateless.
    """

    time_in_force = "GTC"

    def generate(
        self,
        min_price: Number,
        max_price: Number,
        level_count: int,
        reference_price: Number,
        quantity: str,
        rule: TradingRule,
        symbol: str,
    ) -> List[OrderRequest]:
        """
        Args:
            min_price: Lowest level (inclusive)
            max_price: Highest level (inclusive)
            level_count: Number of levels, at least 2
            reference_price: Splits BUY (below) from SELL (at/above)
            quantity: Quantity per level, passed through as typed
            rule: Trading rule of the symbol (price precision)
            symbol: Trading symbol

        Returns:
            Orders in ascending price order
        """
        if level_count < 2:
            raise ValidationError("Grid count must be at least 2", field="level_count")

        low = _to_decimal(min_price, "min_price")
        high = _to_decimal(max_price, "max_price")
        ref = _to_decimal(reference_price, "reference_price")
        if low >= high:
            raise ValidationError("Min Price must be lower than Max Price.", field="min_price")

        tick = precision_unit(rule.price_decimals)
        step = (high - low) / Decimal(level_count - 1)
        orders: List[OrderRequest] = []

        for i in range(level_count):
            # last level pinned to max so the ladder never overshoots the range
            level = high if i == level_count - 1 else low + step * i
            if abs(level - ref) < tick:
                continue
            price = level.quantize(tick, rounding=ROUND_HALF_UP)
            side = OrderSide.BUY if level < ref else OrderSide.SELL
            orders.append(OrderRequest(
                symbol=symbol,
                side=side,
                type=OrderType.LIMIT,
                quantity=quantity,
                price=format(price, "f"),
                time_in_force=self.time_in_force,
            ))

        return orders

"""
Client-side order validation against per-symbol trading rules.

Checks are stateless and run before anything touches the network. The first
failing rule wins. Decimal places are counted on the text as entered, so
"0.0010" is over-precise for a 3-decimal symbol even though it equals 0.001.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from futures_terminal.config.trading_rules import TradingRule, TradingRules
from futures_terminal.errors import ValidationError
from futures_terminal.execution.models import OrderRequest, OrderType
from futures_terminal.utils import count_decimals, parse_decimal, precision_unit


class Validator:
    def __init__(self, rules: Optional[TradingRules] = None) -> None:
        self.rules = rules or TradingRules()

    def check_order(self, order: OrderRequest) -> Optional[ValidationError]:
        rule = self.rules.get(order.symbol)

        error = self._check_quantity(order.quantity, order.symbol, rule)
        if error:
            return error

        if order.type in (OrderType.LIMIT, OrderType.STOP_LIMIT):
            price = parse_decimal(order.price)
            if price is None:
                return ValidationError("Price is required for Limit/Stop-Limit orders.", field="price")
            if price <= 0:
                return ValidationError("Price must be greater than 0.", field="price")
            if count_decimals(order.price) > rule.price_decimals:
                return ValidationError(
                    f"Price precision too high. Max decimals allowed: {rule.price_decimals}.",
                    field="price",
                )

        if order.type == OrderType.STOP_LIMIT:
            stop = parse_decimal(order.stop_price)
            if stop is None:
                return ValidationError("Stop Price is required for Stop-Limit orders.", field="stop_price")
            if stop <= 0:
                return ValidationError("Stop Price must be greater than 0.", field="stop_price")
            if count_decimals(order.stop_price) > rule.price_decimals:
                return ValidationError(
                    f"Stop Price precision too high. Max decimals allowed: {rule.price_decimals}.",
                    field="stop_price",
                )

        return None

    def check_grid_params(
        self,
        symbol: str,
        min_price: Optional[str],
        max_price: Optional[str],
        quantity: Optional[str],
    ) -> Optional[ValidationError]:
        rule = self.rules.get(symbol)

        if not min_price or not max_price:
            return ValidationError("Min and Max prices are required.", field="min_price")
        low = parse_decimal(min_price)
        high = parse_decimal(max_price)
        if low is None or high is None:
            return ValidationError("Min and Max prices must be numbers.", field="min_price")
        if low >= high:
            return ValidationError("Min Price must be lower than Max Price.", field="min_price")
        if low <= 0:
            return ValidationError("Min Price must be positive.", field="min_price")
        if count_decimals(min_price) > rule.price_decimals:
            return ValidationError(f"Min Price precision too high (Max {rule.price_decimals}).", field="min_price")
        if count_decimals(max_price) > rule.price_decimals:
            return ValidationError(f"Max Price precision too high (Max {rule.price_decimals}).", field="max_price")

        return self._check_quantity(quantity, symbol, rule, label="Grid quantity")

    def check_grid_levels(
        self,
        symbol: str,
        min_price: str,
        max_price: str,
        level_count: int,
    ) -> Optional[ValidationError]:
        """Level count and spacing; run after check_grid_params."""
        if level_count < 2:
            return ValidationError("Grid count must be at least 2", field="level_count")
        rule = self.rules.get(symbol)
        low = parse_decimal(min_price)
        high = parse_decimal(max_price)
        if low is None or high is None:
            return ValidationError("Min and Max prices must be numbers.", field="min_price")
        step = (high - low) / Decimal(level_count - 1)
        if step < precision_unit(rule.price_decimals):
            return ValidationError(
                f"Too many grid levels for this range: spacing {step} is below the price tick "
                f"{precision_unit(rule.price_decimals)}.",
                field="level_count",
            )
        return None

    def _check_quantity(
        self,
        quantity: Optional[str],
        symbol: str,
        rule: TradingRule,
        label: str = "Quantity",
    ) -> Optional[ValidationError]:
        qty = parse_decimal(quantity)
        if qty is None:
            return ValidationError(f"{label} is required and must be a number.", field="quantity")
        if qty < rule.min_qty:
            return ValidationError(
                f"{label} {quantity} is below the minimum allowed ({rule.min_qty}) for {symbol}.",
                field="quantity",
            )
        if count_decimals(quantity) > rule.qty_decimals:
            return ValidationError(
                f"{label} precision too high. Max decimals allowed: {rule.qty_decimals}.",
                field="quantity",
            )
        return None

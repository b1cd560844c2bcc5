"""Per-symbol trading rules: minimum quantity and price/quantity precision.

The built-in table covers the common testnet symbols. Overrides are optional
and come from YAML (env `FT_TRADING_RULES`, default `configs/trading_rules.yaml`):

    BTCUSDT: { min_qty: "0.002", price_decimals: 1, qty_decimals: 3 }
    PEPEUSDT: { min_qty: 100, price_decimals: 7, qty_decimals: 0 }

Unknown symbols fall back to the DEFAULT rule.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

log = logging.getLogger("futures_terminal")

DEFAULT_KEY = "DEFAULT"


@dataclass(frozen=True)
class TradingRule:
    min_qty: Decimal
    price_decimals: int
    qty_decimals: int

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: Optional["TradingRule"] = None) -> "TradingRule":
        base = base or BUILTIN_RULES[DEFAULT_KEY]
        return cls(
            min_qty=Decimal(str(data.get("min_qty", base.min_qty))),
            price_decimals=int(data.get("price_decimals", base.price_decimals)),
            qty_decimals=int(data.get("qty_decimals", base.qty_decimals)),
        )


BUILTIN_RULES: Mapping[str, TradingRule] = MappingProxyType({
    "BTCUSDT": TradingRule(Decimal("0.001"), 1, 3),
    "ETHUSDT": TradingRule(Decimal("0.01"), 2, 3),
    "BNBUSDT": TradingRule(Decimal("0.01"), 2, 2),
    "SOLUSDT": TradingRule(Decimal("1"), 3, 0),
    "XRPUSDT": TradingRule(Decimal("0.1"), 4, 1),
    "ADAUSDT": TradingRule(Decimal("1"), 4, 0),
    "DOGEUSDT": TradingRule(Decimal("1"), 5, 0),
    DEFAULT_KEY: TradingRule(Decimal("0.001"), 2, 3),
})


class TradingRules:
    """Immutable symbol -> TradingRule lookup, case-insensitive."""

    def __init__(self, rules: Optional[Mapping[str, TradingRule]] = None) -> None:
        table = dict(rules if rules is not None else BUILTIN_RULES)
        if DEFAULT_KEY not in table:
            table[DEFAULT_KEY] = BUILTIN_RULES[DEFAULT_KEY]
        self._rules: Mapping[str, TradingRule] = MappingProxyType({k.upper(): v for k, v in table.items()})

    def get(self, symbol: str) -> TradingRule:
        return self._rules.get((symbol or "").strip().upper(), self._rules[DEFAULT_KEY])

    def symbols(self) -> list[str]:
        return sorted(k for k in self._rules if k != DEFAULT_KEY)


def load_rule_overrides(path: str | None = None) -> Dict[str, Dict[str, Any]]:
    if path is None:
        path = os.getenv("FT_TRADING_RULES", "configs/trading_rules.yaml")
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        log.warning("trading rules file %s unreadable: %s", p, exc)
        return {}
    if isinstance(data, dict):
        return {str(k).upper(): v for k, v in data.items() if isinstance(v, dict)}
    return {}


def load_trading_rules(path: str | None = None) -> TradingRules:
    """Built-in table merged with YAML overrides, loaded once."""
    table: Dict[str, TradingRule] = dict(BUILTIN_RULES)
    for symbol, override in load_rule_overrides(path).items():
        table[symbol] = TradingRule.from_mapping(override, base=table.get(symbol))
    return TradingRules(table)

"""
Configuration package.

This package contains environment settings and per-symbol trading rules.
"""

from futures_terminal.config.config import Settings
from futures_terminal.config.trading_rules import (
    BUILTIN_RULES,
    TradingRule,
    TradingRules,
    load_rule_overrides,
    load_trading_rules,
)

__all__ = [
    "Settings",
    "BUILTIN_RULES",
    "TradingRule",
    "TradingRules",
    "load_rule_overrides",
    "load_trading_rules",
]

"""
Utility helpers.
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def count_decimals(value: str) -> int:
    """Number of characters after the decimal separator, as typed."""
    text = value.strip()
    if "." not in text:
        return 0
    return len(text.split(".", 1)[1])


def parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    """Strict numeric parse. Returns None for empty, malformed, NaN or infinite input."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def precision_unit(decimals: int) -> Decimal:
    """Smallest step for a given number of decimals, e.g. 2 -> 0.01."""
    return Decimal(1).scaleb(-decimals)


def mask_secret(value: Optional[str], keep: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= keep:
        return "*" * len(value)
    return value[:keep] + "*" * (len(value) - keep)

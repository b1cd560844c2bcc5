"""
Fast JSON helpers backed by orjson.

Usage:
    from futures_terminal.core.json_utils import dumps, loads

    log.info(dumps({"event": "order_submit_ack", "order_id": 1}))
"""

from __future__ import annotations

from typing import Any

import orjson


def dumps(obj: Any) -> str:
    """Encode to a compact JSON string. Decimals and dataclasses pass through str()."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def loads(s: str | bytes) -> Any:
    """Decode a JSON document (raises orjson.JSONDecodeError, a ValueError)."""
    return orjson.loads(s)

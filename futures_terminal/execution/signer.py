"""
Request signing for the exchange REST API.

The signature is HMAC-SHA256 over the exact query string that is sent, so
parameters are joined in insertion order without sorting or URL-encoding.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Mapping


def sign(secret: str, message: str) -> str:
    """Lowercase hex HMAC-SHA256 of `message` keyed by `secret` (both UTF-8)."""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def build_query(params: Mapping[str, object]) -> str:
    return "&".join(f"{key}={value}" for key, value in params.items())


def signed_query(secret: str, params: Mapping[str, object]) -> str:
    """Query string with `signature=<hex>` appended."""
    query = build_query(params)
    return f"{query}&signature={sign(secret, query)}"

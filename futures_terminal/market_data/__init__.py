"""
Market data package: reconnecting stream sessions and their events.
"""

from futures_terminal.market_data.events import OrderUpdate, PriceTick, StreamNotice, StreamState
from futures_terminal.market_data.stream_connection import StreamConnection, default_connector
from futures_terminal.market_data.ticker_stream import TickerStream, format_mid
from futures_terminal.market_data.user_stream import UserStream

__all__ = [
    "OrderUpdate",
    "PriceTick",
    "StreamNotice",
    "StreamState",
    "StreamConnection",
    "default_connector",
    "TickerStream",
    "format_mid",
    "UserStream",
]

"""
Core utilities package: JSON helpers and the stream event channel.
"""

from futures_terminal.core.channel import EventChannel
from futures_terminal.core.json_utils import dumps, loads

__all__ = [
    "EventChannel",
    "dumps",
    "loads",
]

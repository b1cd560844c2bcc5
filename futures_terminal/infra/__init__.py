"""
Infrastructure package: logging configuration and the signed REST client.
"""

from futures_terminal.infra.logging_cfg import SUCCESS, build_logger, level_for_status, log_event
from futures_terminal.infra.rest_client import RestClient

__all__ = [
    "SUCCESS",
    "build_logger",
    "level_for_status",
    "log_event",
    "RestClient",
]

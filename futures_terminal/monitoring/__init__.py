"""
Monitoring package: Prometheus counters for order flow and stream health.
"""

from futures_terminal.monitoring.metrics import TerminalMetrics

__all__ = ["TerminalMetrics"]

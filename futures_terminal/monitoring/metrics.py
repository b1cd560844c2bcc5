"""
Prometheus metrics for the terminal.

Organized into: execution, streams.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class TerminalMetrics:
    """Counters for order flow and stream health. One registry per instance."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        reg = self.registry

        # === Execution Metrics ===
        self.orders_submitted = Counter(
            'orders_submitted_total',
            'Orders accepted (exchange ack or simulated)',
            labelnames=['symbol', 'side', 'mode'],
            registry=reg
        )
        self.orders_failed = Counter(
            'orders_failed_total',
            'Order submissions and cancels that raised',
            labelnames=['symbol', 'reason'],
            registry=reg
        )
        self.orders_cancelled = Counter(
            'orders_cancelled_total',
            'Cancel requests acknowledged',
            labelnames=['symbol', 'mode'],
            registry=reg
        )
        self.dispatch_batches = Counter(
            'dispatch_batches_total',
            'Sequential dispatch batches run',
            labelnames=['mode'],
            registry=reg
        )

        # === Stream Metrics ===
        self.stream_connected = Gauge(
            'stream_connected',
            '1 while the stream socket is open',
            labelnames=['stream'],
            registry=reg
        )
        self.stream_reconnects = Counter(
            'stream_reconnects_total',
            'Reconnections scheduled after an unexpected close',
            labelnames=['stream'],
            registry=reg
        )
        self.stream_events_dropped = Counter(
            'stream_events_dropped_total',
            'Events dropped because the consumer fell behind',
            labelnames=['stream'],
            registry=reg
        )
        self.listen_key_renewals = Counter(
            'listen_key_renewals_total',
            'Listen key keep-alive attempts',
            labelnames=['outcome'],
            registry=reg
        )

    def serve(self, port: int) -> None:
        """Expose /metrics over HTTP on a background thread."""
        start_http_server(port, registry=self.registry)

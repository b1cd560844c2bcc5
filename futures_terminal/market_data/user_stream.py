"""
Private order-status stream keyed by a listen key.

The listen key expires 60 minutes after its last renewal; a keep-alive task
renews it every 50 minutes. Renewal failures are logged at ERROR and
published as notices. After `max_renew_failures` consecutive failures the
session opens a fresh listen key and forces a full reconnect instead of
waiting for the server to silently stop delivering.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

from futures_terminal.errors import TerminalError
from futures_terminal.execution.models import Credentials
from futures_terminal.infra.logging_cfg import log_event
from futures_terminal.infra.rest_client import RestClient
from futures_terminal.market_data.events import OrderUpdate, StreamNotice
from futures_terminal.market_data.stream_connection import StreamConnection

log = logging.getLogger("futures_terminal")

ORDER_TRADE_UPDATE = "ORDER_TRADE_UPDATE"
LISTEN_KEY_RENEW_SEC = 50 * 60


class UserStream(StreamConnection[OrderUpdate]):
    def __init__(
        self,
        rest: RestClient,
        credentials: Credentials,
        ws_base_url: str,
        renew_interval: float = LISTEN_KEY_RENEW_SEC,
        max_renew_failures: int = 3,
        **kwargs: Any,
    ) -> None:
        super().__init__(name="user", **kwargs)
        self.rest = rest
        self.credentials = credentials
        self.ws_base_url = ws_base_url.rstrip("/")
        self.renew_interval = renew_interval
        self.max_renew_failures = max_renew_failures
        self.listen_key: Optional[str] = None
        self.renew_failures = 0
        self.escalations = 0
        self._keepalive_task: Optional[asyncio.Task] = None

    def url(self) -> str:
        if not self.listen_key:
            raise RuntimeError("user stream has no listen key")
        return f"{self.ws_base_url}/{self.listen_key}"

    async def prepare(self) -> None:
        """Obtain the listen key and start the keep-alive timer. Errors propagate."""
        self.listen_key = await self.rest.open_listen_key(self.credentials)
        log_event(log, "listen_key_opened", stream=self.name)
        self._keepalive_task = asyncio.create_task(self._keepalive_loop(), name="listen-key-keepalive")

    async def stop(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await super().stop()

    def handle_message(self, data: Any) -> None:
        if not isinstance(data, dict) or data.get("e") != ORDER_TRADE_UPDATE:
            return
        payload = data.get("o")
        if not isinstance(payload, Mapping):
            log_event(log, "stream_parse_error", level=logging.WARNING, stream=self.name, err="order update without payload")
            return
        self.publish(OrderUpdate.from_event(payload))

    async def _keepalive_loop(self) -> None:
        while self.active:
            await asyncio.sleep(self.renew_interval)
            if not self.active:
                break
            await self.renew_once()

    async def renew_once(self) -> bool:
        """One keep-alive attempt. Returns True on success."""
        try:
            await self.rest.keepalive_listen_key(self.credentials)
        except TerminalError as exc:
            self.renew_failures += 1
            self.metrics.listen_key_renewals.labels(outcome="failed").inc()
            log_event(
                log,
                "listen_key_renew_failed",
                level=logging.ERROR,
                stream=self.name,
                err=str(exc),
                consecutive=self.renew_failures,
                escalate_at=self.max_renew_failures,
            )
            self.notices.publish(StreamNotice(stream=self.name, kind="renew_failed", detail=str(exc)))
            if self.renew_failures >= self.max_renew_failures:
                await self._escalate()
            return False

        if self.renew_failures:
            log_event(log, "listen_key_renew_recovered", stream=self.name, after_failures=self.renew_failures)
        self.renew_failures = 0
        self.metrics.listen_key_renewals.labels(outcome="ok").inc()
        log_event(log, "listen_key_extended", stream=self.name)
        self.notices.publish(StreamNotice(stream=self.name, kind="renewed"))
        return True

    async def _escalate(self) -> None:
        """Fresh listen key plus full reconnect after repeated renewal failures."""
        log_event(log, "listen_key_escalate", level=logging.CRITICAL, stream=self.name, failures=self.renew_failures)
        try:
            new_key = await self.rest.open_listen_key(self.credentials)
        except TerminalError as exc:
            # keep counting; the next period tries again
            log_event(log, "listen_key_reopen_failed", level=logging.ERROR, stream=self.name, err=str(exc))
            return
        self.listen_key = new_key
        self.renew_failures = 0
        self.escalations += 1
        self.notices.publish(StreamNotice(stream=self.name, kind="listen_key_reopened"))
        await self.force_reconnect()

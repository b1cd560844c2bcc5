"""
Minimal async REST client for the futures endpoints.

Every call is signed: parameters are assembled in the caller's order, then
`timestamp` and `recvWindow` if the caller did not place them, then
`signature`. The query string is sent verbatim so the bytes the exchange
sees are the bytes that were signed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from futures_terminal.core.json_utils import loads
from futures_terminal.errors import CredentialError, ExchangeError, NetworkError
from futures_terminal.execution.models import Credentials
from futures_terminal.execution.signer import signed_query
from futures_terminal.utils import now_ms

log = logging.getLogger("futures_terminal")

ORDER_PATH = "/fapi/v1/order"
LISTEN_KEY_PATH = "/fapi/v1/listenKey"
API_KEY_HEADER = "X-MBX-APIKEY"


class RestClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        recv_window_ms: int = 5000,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.recv_window_ms = recv_window_ms
        # A shared client passed in is not closed by close(); otherwise we own it.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.base_url, http2=True, timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def base_params(self, **params: Any) -> Dict[str, str]:
        """Caller params followed by timestamp and recvWindow."""
        out = {k: str(v) for k, v in params.items() if v is not None}
        out.setdefault("timestamp", str(now_ms()))
        out.setdefault("recvWindow", str(self.recv_window_ms))
        return out

    async def signed_request(
        self,
        method: str,
        path: str,
        params: Dict[str, str],
        credentials: Credentials,
    ) -> Any:
        if not credentials.complete:
            raise CredentialError("API Credentials missing")
        query = signed_query(credentials.api_secret, params)
        headers = {"Content-Type": "application/json", API_KEY_HEADER: credentials.api_key}
        try:
            resp = await self.client.request(method, f"{path}?{query}", headers=headers)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc
        return self._unwrap(resp)

    @staticmethod
    def _unwrap(resp: httpx.Response) -> Any:
        data: Any = None
        if resp.content:
            try:
                data = loads(resp.content)
            except ValueError:
                data = None
        if not resp.is_success:
            msg = data.get("msg") if isinstance(data, dict) else None
            code = data.get("code") if isinstance(data, dict) else None
            raise ExchangeError(msg or f"API Error: {resp.status_code}", status=resp.status_code, code=code)
        return data if data is not None else {}

    # ========== Orders ==========

    async def place_order(self, params: Dict[str, str], credentials: Credentials) -> Dict[str, Any]:
        return await self.signed_request("POST", ORDER_PATH, params, credentials)

    async def cancel_order(self, params: Dict[str, str], credentials: Credentials) -> Dict[str, Any]:
        return await self.signed_request("DELETE", ORDER_PATH, params, credentials)

    # ========== Listen key ==========

    async def open_listen_key(self, credentials: Credentials) -> str:
        data = await self.signed_request("POST", LISTEN_KEY_PATH, self.base_params(), credentials)
        key = data.get("listenKey") if isinstance(data, dict) else None
        if not key:
            raise ExchangeError("Failed to get listenKey: missing key in response")
        return str(key)

    async def keepalive_listen_key(self, credentials: Credentials) -> Dict[str, Any]:
        return await self.signed_request("PUT", LISTEN_KEY_PATH, self.base_params(), credentials)

"""
Tests for RestClient: signing on the wire, headers, error mapping.
"""
import httpx
import pytest

from conftest import mock_rest, query_of
from futures_terminal.errors import CredentialError, ExchangeError, NetworkError
from futures_terminal.execution.models import Credentials
from futures_terminal.execution.signer import sign


class TestSignedRequest:
    @pytest.mark.asyncio
    async def test_signature_covers_exact_query(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"orderId": 1})

        rest = mock_rest(handler)
        params = {"symbol": "BTCUSDT", "side": "BUY", "timestamp": "1700000000000", "recvWindow": "5000"}
        await rest.signed_request("POST", "/fapi/v1/order", params, credentials)

        request = seen[0]
        query, _, sig = query_of(request).rpartition("&signature=")
        assert query == "symbol=BTCUSDT&side=BUY&timestamp=1700000000000&recvWindow=5000"
        assert sig == sign("test-secret", query)
        assert request.headers["X-MBX-APIKEY"] == "test-key"
        assert request.method == "POST"
        assert request.url.path == "/fapi/v1/order"

    @pytest.mark.asyncio
    async def test_incomplete_credentials_never_sent(self):
        calls = []
        rest = mock_rest(lambda r: calls.append(r) or httpx.Response(200, json={}))
        with pytest.raises(CredentialError):
            await rest.signed_request("POST", "/fapi/v1/order", {}, Credentials("key", ""))
        assert calls == []

    @pytest.mark.asyncio
    async def test_exchange_error_carries_msg_and_code(self, credentials):
        rest = mock_rest(lambda r: httpx.Response(400, json={"code": -1111, "msg": "Precision is over the maximum"}))
        with pytest.raises(ExchangeError) as exc:
            await rest.place_order({"symbol": "BTCUSDT"}, credentials)
        assert exc.value.status == 400
        assert exc.value.code == -1111
        assert exc.value.message == "Precision is over the maximum"
        assert "-1111" in str(exc.value)

    @pytest.mark.asyncio
    async def test_exchange_error_without_body(self, credentials):
        rest = mock_rest(lambda r: httpx.Response(502, text="bad gateway"))
        with pytest.raises(ExchangeError) as exc:
            await rest.place_order({"symbol": "BTCUSDT"}, credentials)
        assert exc.value.message == "API Error: 502"

    @pytest.mark.asyncio
    async def test_transport_failure_is_network_error(self, credentials):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        rest = mock_rest(handler)
        with pytest.raises(NetworkError):
            await rest.cancel_order({"symbol": "BTCUSDT"}, credentials)


class TestBaseParams:
    def test_timestamp_and_recv_window_follow_caller_params(self):
        rest = mock_rest(lambda r: httpx.Response(200, json={}))
        params = rest.base_params(symbol="BTCUSDT", side="SELL")
        assert list(params) == ["symbol", "side", "timestamp", "recvWindow"]
        assert params["recvWindow"] == "5000"
        assert params["timestamp"].isdigit()

    def test_none_values_dropped(self):
        rest = mock_rest(lambda r: httpx.Response(200, json={}))
        assert "price" not in rest.base_params(symbol="BTCUSDT", price=None)


class TestListenKey:
    @pytest.mark.asyncio
    async def test_open_returns_key(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"listenKey": "abc123"})

        rest = mock_rest(handler)
        assert await rest.open_listen_key(credentials) == "abc123"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/fapi/v1/listenKey"

    @pytest.mark.asyncio
    async def test_open_without_key_in_response(self, credentials):
        rest = mock_rest(lambda r: httpx.Response(200, json={}))
        with pytest.raises(ExchangeError):
            await rest.open_listen_key(credentials)

    @pytest.mark.asyncio
    async def test_keepalive_uses_put(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        rest = mock_rest(handler)
        await rest.keepalive_listen_key(credentials)
        assert seen[0].method == "PUT"

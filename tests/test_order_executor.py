"""
Tests for OrderExecutor in both execution modes.
"""
import random

import httpx
import pytest

from conftest import RecordingSleep, mock_rest, query_of
from futures_terminal.errors import CredentialError, ExchangeError, NetworkError, ValidationError
from futures_terminal.execution.models import (
    Credentials,
    Live,
    OrderRequest,
    OrderSide,
    OrderType,
    Simulated,
)
from futures_terminal.execution.order_executor import OrderExecutor, is_exchange_order_id
from futures_terminal.execution.signer import sign

ACK = {
    "orderId": 4012345678,
    "clientOrderId": "abc",
    "symbol": "BTCUSDT",
    "side": "BUY",
    "type": "LIMIT",
    "status": "NEW",
    "price": "95000.5",
    "avgPrice": "0.00",
    "origQty": "0.010",
    "executedQty": "0",
    "stopPrice": "0",
    "timeInForce": "GTC",
    "updateTime": 1700000000000,
}


def limit_order(**kw):
    base = dict(symbol="btcusdt", side=OrderSide.BUY, type=OrderType.LIMIT, quantity="0.010", price="95000.5")
    base.update(kw)
    return OrderRequest(**base)


def param_names(query):
    return [part.split("=", 1)[0] for part in query.split("&")]


class TestLiveSubmit:
    @pytest.mark.asyncio
    async def test_limit_order_parameter_order_and_signature(self, credentials, metrics):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=ACK)

        executor = OrderExecutor(mock_rest(handler), metrics)
        result = await executor.submit(Live(credentials), limit_order())

        query = query_of(seen[0])
        assert param_names(query) == [
            "symbol", "side", "quantity", "timestamp", "recvWindow", "type", "price", "timeInForce", "signature",
        ]
        assert "symbol=BTCUSDT" in query
        assert "timeInForce=GTC" in query
        unsigned, _, sig = query.rpartition("&signature=")
        assert sig == sign("test-secret", unsigned)
        assert seen[0].headers["X-MBX-APIKEY"] == "test-key"
        assert result.order_id == 4012345678
        assert result.status == "NEW"
        assert metrics.registry.get_sample_value("orders_submitted_total", {"symbol": "BTCUSDT", "side": "BUY", "mode": "live"}) == 1

    @pytest.mark.asyncio
    async def test_market_order_has_no_price(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=ACK)

        executor = OrderExecutor(mock_rest(handler))
        await executor.submit(Live(credentials), limit_order(type=OrderType.MARKET, price=None))
        names = param_names(query_of(seen[0]))
        assert "price" not in names
        assert "timeInForce" not in names
        assert "type=MARKET" in query_of(seen[0])

    @pytest.mark.asyncio
    async def test_stop_limit_maps_to_exchange_stop_type(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=ACK)

        executor = OrderExecutor(mock_rest(handler))
        await executor.submit(Live(credentials), limit_order(type=OrderType.STOP_LIMIT, stop_price="94000.0"))
        query = query_of(seen[0])
        assert "type=STOP&" in query
        names = param_names(query)
        assert names[names.index("price") + 1] == "stopPrice"

    @pytest.mark.asyncio
    async def test_stop_limit_without_stop_price_never_sent(self, credentials):
        calls = []
        executor = OrderExecutor(mock_rest(lambda r: calls.append(r) or httpx.Response(200, json=ACK)))
        with pytest.raises(ValidationError):
            await executor.submit(Live(credentials), limit_order(type=OrderType.STOP_LIMIT))
        assert calls == []

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        calls = []
        executor = OrderExecutor(mock_rest(lambda r: calls.append(r) or httpx.Response(200, json=ACK)))
        with pytest.raises(CredentialError):
            await executor.submit(Live(Credentials("", "")), limit_order())
        assert calls == []

    @pytest.mark.asyncio
    async def test_exchange_rejection_propagates(self, credentials, metrics):
        executor = OrderExecutor(
            mock_rest(lambda r: httpx.Response(400, json={"code": -2019, "msg": "Margin is insufficient."})),
            metrics,
        )
        with pytest.raises(ExchangeError) as exc:
            await executor.submit(Live(credentials), limit_order())
        assert exc.value.message == "Margin is insufficient."
        assert metrics.registry.get_sample_value("orders_failed_total", {"symbol": "BTCUSDT", "reason": "ExchangeError"}) == 1


class TestSimulatedSubmit:
    @pytest.mark.asyncio
    async def test_synthesized_ack(self):
        sleep = RecordingSleep()
        executor = OrderExecutor(sleep=sleep)
        result = await executor.submit(Simulated(latency_sec=0.8), limit_order())
        assert sleep.calls == [0.8]
        assert 0 <= result.order_id < 1_000_000_000
        assert result.client_order_id.startswith("web_")
        assert result.status == "NEW"
        assert result.symbol == "BTCUSDT"
        assert result.orig_qty == "0.010"

    @pytest.mark.asyncio
    async def test_never_touches_network(self):
        """No RestClient configured at all."""
        executor = OrderExecutor(sleep=RecordingSleep())
        result = await executor.submit(Simulated(), limit_order(type=OrderType.MARKET, price=None))
        assert result.price == "0"

    @pytest.mark.asyncio
    async def test_failure_injection(self):
        executor = OrderExecutor(sleep=RecordingSleep())
        with pytest.raises(NetworkError):
            await executor.submit(Simulated(failure_rate=1.0), limit_order())

    @pytest.mark.asyncio
    async def test_seeded_rng_gives_repeatable_ids(self):
        executor = OrderExecutor(sleep=RecordingSleep())
        a = await executor.submit(Simulated(rng=random.Random(7)), limit_order())
        b = await executor.submit(Simulated(rng=random.Random(7)), limit_order())
        assert a.order_id == b.order_id


class TestCancel:
    def test_numeric_reference_is_order_id(self):
        assert is_exchange_order_id("123456")
        assert not is_exchange_order_id("web_123")
        assert not is_exchange_order_id("١٢٣")

    @pytest.mark.asyncio
    async def test_live_cancel_by_order_id(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"orderId": 123456, "symbol": "BTCUSDT", "status": "CANCELED"})

        executor = OrderExecutor(mock_rest(handler))
        result = await executor.cancel(Live(credentials), "btcusdt", "123456")
        query = query_of(seen[0])
        assert seen[0].method == "DELETE"
        assert param_names(query) == ["symbol", "timestamp", "recvWindow", "orderId", "signature"]
        assert "orderId=123456" in query
        assert result.status == "CANCELED"

    @pytest.mark.asyncio
    async def test_live_cancel_by_client_order_id(self, credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"orderId": 1, "clientOrderId": "web_1", "status": "CANCELED"})

        executor = OrderExecutor(mock_rest(handler))
        await executor.cancel(Live(credentials), "BTCUSDT", "web_1")
        assert "origClientOrderId=web_1" in query_of(seen[0])

    @pytest.mark.asyncio
    async def test_live_cancel_rejection_counted_as_failure(self, credentials, metrics):
        executor = OrderExecutor(
            mock_rest(lambda r: httpx.Response(400, json={"code": -2011, "msg": "Unknown order sent."})),
            metrics,
        )
        with pytest.raises(ExchangeError) as exc:
            await executor.cancel(Live(credentials), "btcusdt", "123456")
        assert exc.value.message == "Unknown order sent."
        assert metrics.registry.get_sample_value("orders_failed_total", {"symbol": "BTCUSDT", "reason": "ExchangeError"}) == 1
        assert metrics.registry.get_sample_value("orders_cancelled_total", {"symbol": "BTCUSDT", "mode": "live"}) is None

    @pytest.mark.asyncio
    async def test_empty_reference_rejected(self):
        executor = OrderExecutor(sleep=RecordingSleep())
        with pytest.raises(ValidationError):
            await executor.cancel(Simulated(), "BTCUSDT", "  ")

    @pytest.mark.asyncio
    async def test_simulated_cancel(self):
        sleep = RecordingSleep()
        executor = OrderExecutor(sleep=sleep)
        result = await executor.cancel(Simulated(cancel_latency_sec=0.6), "BTCUSDT", "987")
        assert sleep.calls == [0.6]
        assert result.order_id == 987
        assert result.status == "CANCELED"

        by_client = await executor.cancel(Simulated(), "BTCUSDT", "my-order")
        assert by_client.client_order_id == "my-order"

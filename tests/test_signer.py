"""
Tests for request signing.
"""
from futures_terminal.execution.signer import build_query, sign, signed_query


class TestSign:
    def test_known_vector(self):
        """HMAC-SHA256 reference vector."""
        assert sign("key", "The quick brown fox jumps over the lazy dog") == (
            "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"
        )

    def test_exchange_documentation_vector(self):
        secret = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
        query = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )
        assert sign(secret, query) == "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"

    def test_lowercase_hex_64_chars(self):
        sig = sign("secret", "a=1")
        assert len(sig) == 64
        assert sig == sig.lower()

    def test_deterministic(self):
        assert sign("s", "x=1&y=2") == sign("s", "x=1&y=2")
        assert sign("s", "x=1&y=2") != sign("s", "y=2&x=1")
        assert sign("s", "x=1&y=2") != sign("s", "x=1&y=3")


class TestQuery:
    def test_preserves_insertion_order(self):
        """Parameters are never sorted."""
        params = {"symbol": "BTCUSDT", "side": "BUY", "quantity": "0.01", "timestamp": "1", "recvWindow": "5000"}
        assert build_query(params) == "symbol=BTCUSDT&side=BUY&quantity=0.01&timestamp=1&recvWindow=5000"

    def test_signed_query_appends_signature_last(self):
        params = {"b": "2", "a": "1"}
        out = signed_query("secret", params)
        query, _, sig = out.rpartition("&signature=")
        assert query == "b=2&a=1"
        assert sig == sign("secret", "b=2&a=1")

"""
Tests for environment-driven Settings.
"""
import pytest

from futures_terminal.config.config import Settings

FT_VARS = ["FT_MODE", "FT_API_KEY", "FT_API_SECRET", "FT_SYMBOL", "FT_INTER_ORDER_DELAY_SEC", "FT_SIM_FAILURE_RATE"]


@pytest.fixture
def clean_env(monkeypatch):
    for var in FT_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestSettingsLoad:
    def test_defaults(self, clean_env):
        cfg = Settings.load()
        assert cfg.mode == "simulated"
        assert not cfg.is_live
        assert cfg.base_url == "https://testnet.binancefuture.com"
        assert cfg.recv_window_ms == 5000
        assert cfg.inter_order_delay_sec == 0.2
        assert cfg.listen_key_renew_sec == 3000
        assert cfg.sim_failure_rate == 0.0

    def test_live_from_env(self, clean_env):
        clean_env.setenv("FT_MODE", "LIVE")
        clean_env.setenv("FT_API_KEY", "abcdefgh")
        clean_env.setenv("FT_API_SECRET", "s3cret")
        clean_env.setenv("FT_SYMBOL", "ethusdt")
        cfg = Settings.load()
        assert cfg.is_live
        assert cfg.symbol == "ETHUSDT"

    def test_invalid_mode(self, clean_env):
        clean_env.setenv("FT_MODE", "paper")
        with pytest.raises(ValueError):
            Settings.load()

    def test_failure_rate_bounds(self, clean_env):
        clean_env.setenv("FT_SIM_FAILURE_RATE", "1.5")
        with pytest.raises(ValueError):
            Settings.load()


class TestSecrets:
    def test_repr_and_dump_hide_secrets(self, clean_env):
        clean_env.setenv("FT_API_KEY", "abcdefgh")
        clean_env.setenv("FT_API_SECRET", "s3cret-value")
        cfg = Settings.load()
        assert "s3cret-value" not in repr(cfg)
        dumped = cfg.dump()
        assert dumped["api_secret"] == "***"
        assert dumped["api_key"] == "abcd****"

"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from futures_terminal.core.json_utils import dumps
from futures_terminal.utils import mask_secret

load_dotenv()

MODES = {"simulated", "live"}


@dataclass(frozen=True)
class Settings:
    mode: str
    api_key: str | None = field(repr=False)
    api_secret: str | None = field(repr=False)
    base_url: str
    ws_base_url: str
    symbol: str
    recv_window_ms: int
    http_timeout: float
    reconnect_delay_sec: float
    listen_key_renew_sec: float
    listen_key_validity_sec: float
    listen_key_max_failures: int
    inter_order_delay_sec: float
    sim_latency_sec: float
    sim_cancel_latency_sec: float
    sim_failure_rate: float
    sim_fill_delay_sec: float
    ticker_debounce_sec: float
    trading_rules_path: str
    log_level: str
    log_file: str | None
    metrics_port: int
    stream_queue_size: int

    @property
    def is_live(self) -> bool:
        return self.mode == "live"

    def dump(self) -> dict:
        """Return a dict of settings for logging; secrets are masked."""
        out = self.__dict__.copy()
        out["api_key"] = mask_secret(self.api_key)
        out["api_secret"] = "***" if self.api_secret else ""
        return out

    @classmethod
    def load(cls) -> "Settings":
        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            mode=os.getenv("FT_MODE", "simulated").strip().lower(),
            api_key=os.getenv("FT_API_KEY") or None,
            api_secret=os.getenv("FT_API_SECRET") or None,
            base_url=os.getenv("FT_BASE_URL", "https://testnet.binancefuture.com"),
            ws_base_url=os.getenv("FT_WS_BASE_URL", "wss://stream.binancefuture.com/ws"),
            symbol=os.getenv("FT_SYMBOL", "BTCUSDT").strip().upper(),
            recv_window_ms=_int_env("FT_RECV_WINDOW_MS", 5000),
            http_timeout=_float_env("FT_HTTP_TIMEOUT", 10.0),
            reconnect_delay_sec=_float_env("FT_RECONNECT_DELAY_SEC", 3.0),
            # listenKey expires after 60 minutes; renew every 50
            listen_key_renew_sec=_float_env("FT_LISTEN_KEY_RENEW_SEC", 50 * 60),
            listen_key_validity_sec=_float_env("FT_LISTEN_KEY_VALIDITY_SEC", 60 * 60),
            listen_key_max_failures=_int_env("FT_LISTEN_KEY_MAX_FAILURES", 3),
            inter_order_delay_sec=_float_env("FT_INTER_ORDER_DELAY_SEC", 0.2),
            sim_latency_sec=_float_env("FT_SIM_LATENCY_SEC", 0.8),
            sim_cancel_latency_sec=_float_env("FT_SIM_CANCEL_LATENCY_SEC", 0.6),
            sim_failure_rate=_float_env("FT_SIM_FAILURE_RATE", 0.0),
            sim_fill_delay_sec=_float_env("FT_SIM_FILL_DELAY_SEC", 2.0),
            ticker_debounce_sec=_float_env("FT_TICKER_DEBOUNCE_SEC", 0.5),
            trading_rules_path=os.getenv("FT_TRADING_RULES", "configs/trading_rules.yaml"),
            log_level=os.getenv("FT_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("FT_LOG_FILE") or None,
            metrics_port=_int_env("FT_METRICS_PORT", 0),
            stream_queue_size=_int_env("FT_STREAM_QUEUE_SIZE", 1000),
        )
        cfg._validate()
        _sanity_check(cfg)
        return cfg

    def _validate(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"FT_MODE must be one of {sorted(MODES)}, got {self.mode!r}")
        if self.recv_window_ms <= 0:
            raise ValueError("FT_RECV_WINDOW_MS must be > 0")
        if self.http_timeout <= 0:
            raise ValueError("FT_HTTP_TIMEOUT must be > 0")
        if self.reconnect_delay_sec <= 0:
            raise ValueError("FT_RECONNECT_DELAY_SEC must be > 0")
        if self.listen_key_renew_sec <= 0:
            raise ValueError("FT_LISTEN_KEY_RENEW_SEC must be > 0")
        if self.listen_key_renew_sec >= self.listen_key_validity_sec:
            raise ValueError("FT_LISTEN_KEY_RENEW_SEC must be shorter than FT_LISTEN_KEY_VALIDITY_SEC")
        if self.listen_key_max_failures < 1:
            raise ValueError("FT_LISTEN_KEY_MAX_FAILURES must be >= 1")
        if self.inter_order_delay_sec < 0:
            raise ValueError("FT_INTER_ORDER_DELAY_SEC must be >= 0")
        if not 0.0 <= self.sim_failure_rate <= 1.0:
            raise ValueError("FT_SIM_FAILURE_RATE must be within [0, 1]")
        if self.stream_queue_size <= 0:
            raise ValueError("FT_STREAM_QUEUE_SIZE must be > 0")

        if self.is_live and not (self.api_key and self.api_secret):
            import logging
            logging.getLogger("futures_terminal").warning(
                "WARNING: FT_MODE=live but FT_API_KEY / FT_API_SECRET are not both set. "
                "Orders will be rejected with a credential error."
            )


def _sanity_check(cfg: Settings) -> None:
    """
    Log the effective settings once at startup so overrides are obvious.
    """
    import logging

    logger = logging.getLogger("futures_terminal")
    payload = {
        "event": "config_loaded",
        "mode": cfg.mode,
        "symbol": cfg.symbol,
        "base_url": cfg.base_url,
        "inter_order_delay_sec": cfg.inter_order_delay_sec,
        "has_credentials": bool(cfg.api_key and cfg.api_secret),
    }
    logger.info(dumps(payload))

"""SwingScan — application configuration.

Loads .env variables into a typed config object.  Every variable has a
default; malformed numbers are reported by variable name.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from swingscan.market.retry import RetryPolicy
from swingscan.market.yahoo_client import DEFAULT_BASE_URL
from swingscan.scanner import ScannerSettings


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    data_base_url: str
    universe_file: str
    batch_size: int
    symbol_timeout_s: float
    http_timeout_s: float
    retry_max_attempts: int
    retry_base_delay_s: float
    retry_multiplier: float
    retry_max_delay_s: float
    market_index: str
    volatility_index: str
    log_level: str
    health_port: int

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay_s=self.retry_base_delay_s,
            multiplier=self.retry_multiplier,
            max_delay_s=self.retry_max_delay_s,
        )

    def scanner_settings(self) -> ScannerSettings:
        return ScannerSettings(
            batch_size=self.batch_size,
            symbol_timeout_s=self.symbol_timeout_s,
            market_index=self.market_index,
            volatility_index=self.volatility_index,
        )


def _int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            f"Environment variable {name} must be an integer, got {raw!r}"
        ) from None


def _float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            f"Environment variable {name} must be a number, got {raw!r}"
        ) from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from the environment (and *env_path* if given).

    Raises ``ValueError`` naming the variable when a numeric value cannot
    be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        data_base_url=os.environ.get("SWINGSCAN_DATA_BASE_URL", DEFAULT_BASE_URL),
        universe_file=os.environ.get("SWINGSCAN_UNIVERSE_FILE", "universes.json"),
        batch_size=_int("SWINGSCAN_BATCH_SIZE", "5"),
        symbol_timeout_s=_float("SWINGSCAN_SYMBOL_TIMEOUT_S", "30"),
        http_timeout_s=_float("SWINGSCAN_HTTP_TIMEOUT_S", "15"),
        retry_max_attempts=_int("SWINGSCAN_RETRY_MAX_ATTEMPTS", "3"),
        retry_base_delay_s=_float("SWINGSCAN_RETRY_BASE_DELAY_S", "1.0"),
        retry_multiplier=_float("SWINGSCAN_RETRY_MULTIPLIER", "2.0"),
        retry_max_delay_s=_float("SWINGSCAN_RETRY_MAX_DELAY_S", "10.0"),
        market_index=os.environ.get("SWINGSCAN_MARKET_INDEX", "NIFTY"),
        volatility_index=os.environ.get("SWINGSCAN_VOLATILITY_INDEX", "VIX"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        health_port=_int("HEALTH_PORT", "8080"),
    )

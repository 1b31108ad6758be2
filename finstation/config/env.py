from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MarketConfig:
    api_key: str | None = None
    base_url: str = "https://financialmodelingprep.com/api/v3"
    timeout_sec: float = 10.0


def get_market_config() -> MarketConfig:
    return MarketConfig(
        api_key=os.getenv("FMP_API_KEY"),
        base_url=os.getenv("FMP_BASE_URL", "https://financialmodelingprep.com/api/v3").rstrip("/"),
        timeout_sec=float(os.getenv("MARKET_TIMEOUT_SEC", "10")),
    )


@dataclass(frozen=True)
class StorageConfig:
    scenarios_path: Path


def get_storage_config() -> StorageConfig:
    p = os.getenv("SCENARIO_STORE_PATH", "./scenario_cache/scenarios.json")
    return StorageConfig(scenarios_path=Path(p).resolve())


@dataclass(frozen=True)
class APIConfig:
    api_key: str | None = None
    rate_limit_n: int = 5
    rate_limit_window_sec: float = 1.0


def get_api_config() -> APIConfig:
    return APIConfig(
        api_key=os.getenv("API_KEY"),
        rate_limit_n=int(os.getenv("RATE_LIMIT_N", "5")),
        rate_limit_window_sec=float(os.getenv("RATE_LIMIT_WINDOW_SEC", "1.0")),
    )


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once from LOG_LEVEL (default INFO)."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)

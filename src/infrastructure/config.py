"""
Runtime configuration read from environment variables.

load_settings() calls python-dotenv's load_dotenv() first, so a local .env file
fills in anything not already exported in the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _csv(env: Mapping[str, str], name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = env.get(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    price_api_url: str = "http://localhost:8000"
    price_ws_url: str = "ws://localhost:8000/ws"
    snapshot_provider: str = "http"
    yfinance_symbols: tuple[str, ...] = ("AAPL", "TSLA", "AMZN")
    reconnect_delay_seconds: float = 2.0
    history_limit: int = 200
    simulation_tick_seconds: float = 0.2
    price_change_chance: float = 0.05
    cors_origins: tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from *env* (defaults to os.environ after load_dotenv()).

    Raises:
        ValueError: on a malformed number or an unknown SNAPSHOT_PROVIDER.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    defaults = Settings()
    provider = env.get("SNAPSHOT_PROVIDER", defaults.snapshot_provider).strip().lower()
    if provider not in ("http", "yfinance"):
        raise ValueError(f"SNAPSHOT_PROVIDER must be 'http' or 'yfinance', got {provider!r}")

    history_limit = _int(env, "HISTORY_LIMIT", defaults.history_limit)
    if history_limit <= 0:
        raise ValueError("HISTORY_LIMIT must be positive")

    return Settings(
        price_api_url=env.get("PRICE_API_URL", defaults.price_api_url).rstrip("/"),
        price_ws_url=env.get("PRICE_WS_URL", defaults.price_ws_url),
        snapshot_provider=provider,
        yfinance_symbols=tuple(
            s.upper() for s in _csv(env, "YFINANCE_SYMBOLS", defaults.yfinance_symbols)
        ),
        reconnect_delay_seconds=_float(
            env, "RECONNECT_DELAY_SECONDS", defaults.reconnect_delay_seconds
        ),
        history_limit=history_limit,
        simulation_tick_seconds=_float(
            env, "SIMULATION_TICK_SECONDS", defaults.simulation_tick_seconds
        ),
        price_change_chance=_float(env, "PRICE_CHANGE_CHANCE", defaults.price_change_chance),
        cors_origins=_csv(env, "CORS_ORIGINS", defaults.cors_origins),
        log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
    )

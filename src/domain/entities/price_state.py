"""
Domain entities for live price state and the rolling price history.
Zero external dependencies: pure Python dataclasses only.

Symbols live in a nested ``prices`` mapping, never next to the fixed
``date`` / ``time`` / ``bucket`` fields, so a ticker literally named "date"
cannot collide with them.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

DEFAULT_HISTORY_LIMIT = 200


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass(frozen=True)
class SymbolPriceState:
    current: float
    previous: float
    open: float

    @classmethod
    def first_seen(cls, price: float) -> "SymbolPriceState":
        """State for a symbol observed for the first time (zero delta)."""
        return cls(current=price, previous=price, open=price)

    def advance(self, new_price: float) -> "SymbolPriceState":
        return SymbolPriceState(current=new_price, previous=self.current, open=self.open)

    @property
    def change_percent(self) -> float:
        """Change against the session-open price, in percent."""
        if self.open <= 0:
            return 0.0
        return (self.current - self.open) / self.open * 100

    @property
    def direction(self) -> str:
        if self.current > self.previous:
            return "up"
        if self.current < self.previous:
            return "down"
        return "flat"


def coerce_price_map(payload: object) -> dict[str, float]:
    """Validate a decoded JSON payload as a symbol -> price mapping.

    Raises:
        ValueError: if *payload* is not an object of string keys to numbers.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    prices: dict[str, float] = {}
    for symbol, price in payload.items():
        if not isinstance(symbol, str) or not symbol:
            raise ValueError(f"invalid symbol key: {symbol!r}")
        # bool is an int subclass; "true" is never a price
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValueError(f"price for {symbol!r} is not a number: {price!r}")
        if not math.isfinite(price):
            raise ValueError(f"price for {symbol!r} is not finite: {price!r}")
        prices[symbol] = float(price)
    return prices


def _short_time_label(at: datetime) -> str:
    local = at.astimezone()
    return f"{local.hour % 12 or 12}:{local:%M:%S %p}"


@dataclass(frozen=True)
class HistorySnapshot:
    date: str
    time: str
    prices: Mapping[str, float] = field(default_factory=dict)
    bucket: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "prices", MappingProxyType(dict(self.prices)))

    @classmethod
    def capture(cls, prices: Mapping[str, float], at: datetime) -> "HistorySnapshot":
        """Dense snapshot of *prices* tagged with the processing time *at*."""
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        at = at.astimezone(timezone.utc)
        return cls(date=at.isoformat(), time=_short_time_label(at), prices=prices)

    @property
    def timestamp(self) -> datetime:
        parsed = datetime.fromisoformat(self.date.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def as_dict(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "bucket": self.bucket,
            "prices": dict(self.prices),
        }


class PriceHistory:
    """Append-only, bounded sequence of HistorySnapshot entries.

    Once *limit* entries are held, each append evicts the oldest entry (FIFO).
    Entries are never mutated or reordered after insertion.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("history limit must be positive")
        self._entries: deque[HistorySnapshot] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._entries.maxlen

    def append(self, snapshot: HistorySnapshot) -> None:
        self._entries.append(snapshot)

    def snapshot(self) -> tuple[HistorySnapshot, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistorySnapshot]:
        return iter(tuple(self._entries))

"""
Infrastructure adapter: yfinance -> IPriceSnapshotSource.
Seeds the dashboard from Yahoo Finance last prices instead of the exchange
simulator. All yfinance-specific details (Ticker, fast_info, info) are confined
here; yfinance is blocking, so it runs in a worker thread.
"""

import asyncio
import logging
from typing import Iterable

import yfinance as yf

from src.domain.errors import SnapshotFetchError
from src.domain.ports.price_source_port import IPriceSnapshotSource

LOG = logging.getLogger(__name__)


class YFinancePriceSnapshotSource(IPriceSnapshotSource):
    """Fetches last traded prices for a fixed symbol list from Yahoo Finance."""

    def __init__(self, symbols: Iterable[str]) -> None:
        self._symbols = tuple(symbol.upper().strip() for symbol in symbols if symbol.strip())

    async def fetch_prices(self) -> dict[str, float]:
        return await asyncio.to_thread(self._fetch_blocking)

    def _fetch_blocking(self) -> dict[str, float]:
        prices: dict[str, float] = {}
        for symbol in self._symbols:
            try:
                ticker = yf.Ticker(symbol)
                price = getattr(ticker.fast_info, "last_price", None) or ticker.info.get(
                    "currentPrice"
                )
            except Exception as exc:
                LOG.warning("yfinance lookup failed for %s: %s", symbol, exc)
                continue
            if price is None:
                LOG.warning("No price data available for symbol: %r", symbol)
                continue
            prices[symbol] = round(float(price), 4)

        if not prices:
            raise SnapshotFetchError(
                f"No price data available for any of: {', '.join(self._symbols) or '(none)'}"
            )
        return prices

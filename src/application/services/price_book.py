"""
Application service: simulated exchange prices.

PriceBook holds the exchange's current prices and moves a random subset on each
tick; PriceSimulator drives it on a fixed interval and hands every non-empty set
of changes to a publisher (the live-update channel's broadcaster).
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Mapping, Optional

LOG = logging.getLogger(__name__)

DEFAULT_PRICES: Mapping[str, float] = {
    "AAPL": 150.25,
    "TSLA": 220.70,
    "AMZN": 130.10,
    "INFY": 18.50,
    "TCS": 42.00,
}

MAX_MOVE = 0.05


def _truncate_cents(price: float) -> float:
    return int(price * 100) / 100


class PriceBook:
    def __init__(
        self,
        prices: Mapping[str, float] = DEFAULT_PRICES,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._prices = dict(prices)
        self._rng = rng or random.Random()

    def prices(self) -> dict[str, float]:
        return dict(self._prices)

    def tick(self, chance: float) -> dict[str, float]:
        """Move each symbol with probability *chance* by a uniform -5%..+5%.

        Prices are truncated (not rounded) to cents. Returns only the symbols
        that changed, as a partial update.
        """
        changed: dict[str, float] = {}
        for symbol, price in self._prices.items():
            if self._rng.random() < chance:
                move = self._rng.random() * 2 * MAX_MOVE - MAX_MOVE
                changed[symbol] = _truncate_cents(price * (1 + move))
        self._prices.update(changed)
        return changed


Publisher = Callable[[dict[str, float]], Awaitable[None]]


class PriceSimulator:
    TICK_INTERVAL_SECONDS: float = 0.2
    PRICE_CHANGE_CHANCE: float = 0.05

    def __init__(
        self,
        book: PriceBook,
        publish: Publisher,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        chance: float = PRICE_CHANGE_CHANCE,
    ) -> None:
        self._book = book
        self._publish = publish
        self._tick_interval = tick_interval
        self._chance = chance
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        LOG.info("Starting price simulation (tick %.3fs, chance %.2f)",
                 self._tick_interval, self._chance)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="price-simulator")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        LOG.info("Price simulation stopped")

    async def step(self) -> dict[str, float]:
        """Run one tick and publish the changes, if any."""
        changed = self._book.tick(self._chance)
        if changed:
            try:
                await self._publish(changed)
            except Exception:
                LOG.exception("Publishing price changes failed")
        return changed

    async def _run(self) -> None:
        while True:
            await self.step()
            await asyncio.sleep(self._tick_interval)

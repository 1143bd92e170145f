"""
Tests for the simulated exchange: price book ticks, simulator loop, order book.
"""

import asyncio
import random
from datetime import timezone

import pytest

from src.application.services.order_book import OrderBook
from src.application.services.price_book import DEFAULT_PRICES, PriceBook, PriceSimulator
from src.domain.entities.order import OrderRequest, OrderType


class TestPriceBook:
    def test_starts_with_default_prices(self):
        book = PriceBook()
        assert book.prices() == dict(DEFAULT_PRICES)
        book.prices()["AAPL"] = 0.0
        assert book.prices()["AAPL"] == 150.25

    def test_zero_chance_changes_nothing(self):
        book = PriceBook(rng=random.Random(7))
        assert book.tick(0.0) == {}
        assert book.prices() == dict(DEFAULT_PRICES)

    def test_moves_stay_within_five_percent_and_are_truncated_to_cents(self):
        book = PriceBook(rng=random.Random(42))
        before = book.prices()
        changed = book.tick(1.0)

        assert set(changed) == set(before)
        for symbol, price in changed.items():
            assert before[symbol] * 0.95 - 0.01 <= price <= before[symbol] * 1.05
            assert abs(price * 100 - round(price * 100)) < 1e-6
        assert book.prices() == changed

    def test_tick_returns_only_changed_symbols(self):
        book = PriceBook({"AAPL": 100.0, "TSLA": 200.0}, rng=random.Random(3))
        for _ in range(20):
            changed = book.tick(0.5)
            assert set(changed) <= {"AAPL", "TSLA"}
            for symbol, price in changed.items():
                assert book.prices()[symbol] == price


class TestPriceSimulator:
    @pytest.mark.asyncio
    async def test_step_publishes_non_empty_changes(self):
        published = []

        async def publish(prices):
            published.append(prices)

        simulator = PriceSimulator(PriceBook(rng=random.Random(1)), publish, chance=1.0)
        changed = await simulator.step()
        assert published == [changed]

        quiet = PriceSimulator(PriceBook(), publish, chance=0.0)
        assert await quiet.step() == {}
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_publisher_failure_is_logged(self, caplog):
        async def publish(prices):
            raise ConnectionError("client gone")

        simulator = PriceSimulator(PriceBook(), publish, chance=1.0)
        await simulator.step()
        assert "Publishing price changes failed" in caplog.text

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        published = []

        async def publish(prices):
            published.append(prices)

        simulator = PriceSimulator(PriceBook(), publish, tick_interval=0.001, chance=1.0)
        simulator.start()
        simulator.start()
        assert simulator.running
        await asyncio.sleep(0.02)
        await simulator.stop()
        await simulator.stop()

        assert not simulator.running
        assert published


class TestOrderBook:
    def test_add_assigns_id_and_utc_timestamp(self):
        book = OrderBook()
        first = book.add(OrderRequest("AAPL", OrderType.BUY, 10, 150.25))
        second = book.add(OrderRequest("TSLA", OrderType.SELL, 1, 220.7))

        assert first.id != second.id
        assert first.timestamp.tzinfo is timezone.utc
        assert [o.symbol for o in book.all()] == ["AAPL", "TSLA"]
        assert len(book) == 2

    def test_all_returns_a_copy(self):
        book = OrderBook()
        book.add(OrderRequest("AAPL", OrderType.BUY, 1, 1.0))
        book.all().clear()
        assert len(book.all()) == 1

"""
Tests for the httpx adapters (using httpx.MockTransport) and configuration.
"""

import json

import httpx
import pytest

from src.domain.entities.order import OrderRequest, OrderType
from src.domain.errors import OrderSubmissionError, SnapshotFetchError
from src.infrastructure.config import Settings, load_settings
from src.infrastructure.orders.http_order_gateway import HttpOrderGateway
from src.infrastructure.price_feed.http_snapshot_source import HttpPriceSnapshotSource


def transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class TestHttpPriceSnapshotSource:
    @pytest.mark.asyncio
    async def test_fetches_prices(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/prices"
            return httpx.Response(200, json={"AAPL": 150.25, "TCS": 42})

        source = HttpPriceSnapshotSource("http://exchange/", transport=transport(handler))
        assert await source.fetch_prices() == {"AAPL": 150.25, "TCS": 42.0}

    @pytest.mark.asyncio
    async def test_http_error_becomes_snapshot_fetch_error(self):
        source = HttpPriceSnapshotSource(
            "http://exchange", transport=transport(lambda r: httpx.Response(500))
        )
        with pytest.raises(SnapshotFetchError):
            await source.fetch_prices()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"AAPL": "x"}', b'{"AAPL": NaN}'])
    async def test_bad_payload_becomes_snapshot_fetch_error(self, body):
        source = HttpPriceSnapshotSource(
            "http://exchange", transport=transport(lambda r: httpx.Response(200, content=body))
        )
        with pytest.raises(SnapshotFetchError):
            await source.fetch_prices()

    @pytest.mark.asyncio
    async def test_connection_error_becomes_snapshot_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        source = HttpPriceSnapshotSource("http://exchange", transport=transport(handler))
        with pytest.raises(SnapshotFetchError):
            await source.fetch_prices()


class TestHttpOrderGateway:
    ORDER = {
        "id": "3f1c",
        "symbol": "AAPL",
        "type": "BUY",
        "quantity": 10,
        "price": 150.25,
        "timestamp": "2025-03-03T09:30:00Z",
    }

    @pytest.mark.asyncio
    async def test_submit_posts_order(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=self.ORDER)

        gateway = HttpOrderGateway("http://exchange", transport=transport(handler))
        order = await gateway.submit(OrderRequest("AAPL", OrderType.BUY, 10, 150.25))

        assert seen == {
            "method": "POST",
            "body": {"symbol": "AAPL", "type": "BUY", "quantity": 10, "price": 150.25},
        }
        assert order.id == "3f1c"
        assert order.type is OrderType.BUY
        assert order.timestamp.isoformat() == "2025-03-03T09:30:00+00:00"

    @pytest.mark.asyncio
    async def test_list_orders(self):
        gateway = HttpOrderGateway(
            "http://exchange", transport=transport(lambda r: httpx.Response(200, json=[self.ORDER]))
        )
        orders = await gateway.list_orders()
        assert [o.symbol for o in orders] == ["AAPL"]

    @pytest.mark.asyncio
    async def test_failures_become_order_submission_errors(self):
        gateway = HttpOrderGateway(
            "http://exchange",
            transport=transport(lambda r: httpx.Response(400, json={"error": "bad"})),
        )
        with pytest.raises(OrderSubmissionError):
            await gateway.submit(OrderRequest("AAPL", OrderType.BUY, 1, 1.0))

        gateway = HttpOrderGateway(
            "http://exchange", transport=transport(lambda r: httpx.Response(200, json=[{}]))
        )
        with pytest.raises(OrderSubmissionError):
            await gateway.list_orders()


class TestSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert settings.reconnect_delay_seconds == 2.0
        assert settings.history_limit == 200

    def test_overrides(self):
        settings = load_settings(
            {
                "PRICE_API_URL": "http://exchange:9000/",
                "PRICE_WS_URL": "ws://exchange:9000/ws",
                "SNAPSHOT_PROVIDER": "YFinance",
                "YFINANCE_SYMBOLS": "msft, nvda,,",
                "RECONNECT_DELAY_SECONDS": "0.5",
                "HISTORY_LIMIT": "50",
                "CORS_ORIGINS": "http://a.example,http://b.example",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.price_api_url == "http://exchange:9000"
        assert settings.snapshot_provider == "yfinance"
        assert settings.yfinance_symbols == ("MSFT", "NVDA")
        assert settings.reconnect_delay_seconds == 0.5
        assert settings.history_limit == 50
        assert settings.cors_origins == ("http://a.example", "http://b.example")
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "env",
        [
            {"RECONNECT_DELAY_SECONDS": "soon"},
            {"HISTORY_LIMIT": "0"},
            {"HISTORY_LIMIT": "many"},
            {"SNAPSHOT_PROVIDER": "bloomberg"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ValueError):
            load_settings(env)


class TestYFinancePriceSnapshotSource:
    class FakeTicker:
        PRICES = {"AAPL": 189.987654, "MSFT": None}

        def __init__(self, symbol):
            if symbol == "BOOM":
                raise RuntimeError("rate limited")
            self.fast_info = type("FastInfo", (), {"last_price": self.PRICES.get(symbol)})()
            self.info = {"currentPrice": 410.5} if symbol == "MSFT" else {}

    @pytest.mark.asyncio
    async def test_collects_last_prices_and_skips_failures(self, monkeypatch):
        from src.infrastructure.price_feed import yfinance_snapshot_source as module

        monkeypatch.setattr(module.yf, "Ticker", self.FakeTicker)
        source = module.YFinancePriceSnapshotSource(["aapl", "msft", "boom", "nope"])

        assert await source.fetch_prices() == {"AAPL": 189.9877, "MSFT": 410.5}

    @pytest.mark.asyncio
    async def test_no_prices_at_all_is_a_snapshot_fetch_error(self, monkeypatch):
        from src.infrastructure.price_feed import yfinance_snapshot_source as module

        monkeypatch.setattr(module.yf, "Ticker", self.FakeTicker)
        with pytest.raises(SnapshotFetchError):
            await module.YFinancePriceSnapshotSource(["boom", "nope"]).fetch_prices()

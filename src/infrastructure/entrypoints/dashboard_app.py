"""
FastAPI entry point: the trading dashboard's backend-for-frontend.

Exposes the aggregator's live state, resampled chart series, the chart symbol
selection, and order placement/listing to the presentation layer. The
aggregator is started when the app starts and torn down when it stops, so no
connection or reconnect timer outlives the app.

This module is the Composition Root for the dashboard process.

Run locally (with the exchange on :8000):
    uvicorn src.infrastructure.entrypoints.dashboard_app:app --port 8001
"""

import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.application.services.price_stream_aggregator import PriceStreamAggregator
from src.application.services.symbol_selection import SymbolSelection
from src.application.use_cases.get_price_chart import GetPriceChartUseCase
from src.application.use_cases.get_stock_overview import GetStockOverviewUseCase
from src.application.use_cases.list_orders import ListOrdersUseCase
from src.application.use_cases.place_order import PlaceOrderUseCase
from src.domain.errors import OrderSubmissionError
from src.domain.ports.order_gateway_port import IOrderGateway
from src.domain.ports.price_source_port import IPriceSnapshotSource
from src.infrastructure.config import Settings, load_settings
from src.infrastructure.logging_config import configure_logging
from src.infrastructure.orders.http_order_gateway import HttpOrderGateway
from src.infrastructure.price_feed.http_snapshot_source import HttpPriceSnapshotSource
from src.infrastructure.price_feed.websocket_channel import WebSocketLiveUpdateChannel

LOG = logging.getLogger(__name__)


class SelectionBody(BaseModel):
    symbols: list[str]


class PlaceOrderBody(BaseModel):
    symbol: str
    type: str
    quantity: int
    price: float


def create_app(
    aggregator: PriceStreamAggregator,
    order_gateway: IOrderGateway,
    selection: Optional[SymbolSelection] = None,
    cors_origins: tuple[str, ...] = (),
) -> FastAPI:
    """Build the dashboard app around already-constructed collaborators.

    Args:
        aggregator:    PriceStreamAggregator; started and closed by the app lifespan.
        order_gateway: IOrderGateway used for placing and listing orders.
        selection:     Initial chart symbol selection (defaults to AAPL).
        cors_origins:  Browser origins allowed to call the API.
    """
    selection = selection if selection is not None else SymbolSelection()
    overview_uc = GetStockOverviewUseCase()
    chart_uc = GetPriceChartUseCase()
    place_order_uc = PlaceOrderUseCase(order_gateway)
    list_orders_uc = ListOrdersUseCase(order_gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await aggregator.start()
        try:
            yield
        finally:
            await aggregator.close()

    app = FastAPI(title="Trading Dashboard API", lifespan=lifespan)
    app.state.aggregator = aggregator
    app.state.selection = selection

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST", "PUT", "OPTIONS"],
            allow_headers=["Origin", "Content-Type", "Authorization"],
        )

    @app.get("/stocks")
    async def get_stocks():
        rows = overview_uc.execute(aggregator.stocks)
        return [dataclasses.asdict(row) for row in rows]

    @app.get("/history")
    async def get_history():
        return [entry.as_dict() for entry in aggregator.history]

    @app.get("/chart")
    async def get_chart(range_: str = Query("24h", alias="range")):
        try:
            chart = chart_uc.execute(aggregator.history, range_, selection)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return chart.as_dict()

    @app.get("/selection")
    async def get_selection():
        return {"symbols": list(selection.symbols)}

    @app.put("/selection")
    async def put_selection(body: SelectionBody):
        try:
            selection.replace(body.symbols)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"symbols": list(selection.symbols)}

    @app.post("/selection/{symbol}/toggle")
    async def toggle_selection(symbol: str):
        try:
            selected = selection.toggle(symbol)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"symbol": symbol.upper().strip(), "selected": selected,
                "symbols": list(selection.symbols)}

    @app.get("/orders")
    async def get_orders(symbol: Optional[str] = None, sort: Optional[str] = None,
                         desc: bool = False):
        try:
            orders = await list_orders_uc.execute(symbol, sort, desc)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OrderSubmissionError as exc:
            LOG.error("Error fetching orders: %s", exc)
            raise HTTPException(status_code=502, detail="Order service unavailable") from exc
        return [order.as_dict() for order in orders]

    @app.post("/orders", status_code=201)
    async def post_order(body: PlaceOrderBody):
        try:
            order = await place_order_uc.execute(body.symbol, body.type, body.quantity, body.price)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OrderSubmissionError as exc:
            raise HTTPException(status_code=502, detail="Order service unavailable") from exc
        return order.as_dict()

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "connection": aggregator.state.value,
            "reconnect_pending": aggregator.reconnect_pending,
            "symbols": len(aggregator.stocks),
            "history": len(aggregator.history),
        }

    return app


def _build_snapshot_source(settings: Settings) -> IPriceSnapshotSource:
    if settings.snapshot_provider == "yfinance":
        # imported lazily: yfinance pulls in pandas
        from src.infrastructure.price_feed.yfinance_snapshot_source import (
            YFinancePriceSnapshotSource,
        )
        return YFinancePriceSnapshotSource(settings.yfinance_symbols)
    return HttpPriceSnapshotSource(settings.price_api_url)


def build_app(settings: Settings) -> FastAPI:
    aggregator = PriceStreamAggregator(
        snapshot_source=_build_snapshot_source(settings),
        channel=WebSocketLiveUpdateChannel(settings.price_ws_url),
        reconnect_delay=settings.reconnect_delay_seconds,
        history_limit=settings.history_limit,
    )
    return create_app(
        aggregator,
        HttpOrderGateway(settings.price_api_url),
        cors_origins=settings.cors_origins,
    )


# ---------------------------------------------------------------------------
# Composition Root: wire all dependencies once at startup
# ---------------------------------------------------------------------------
_settings = load_settings()
configure_logging(_settings.log_level)
app = build_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)

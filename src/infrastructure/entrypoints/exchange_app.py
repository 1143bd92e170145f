"""
FastAPI entry point: simulated exchange that feeds the dashboard.

Serves the one-shot price snapshot, records orders, and broadcasts every
simulated partial price update to all WebSocket clients on /ws. This module is
the Composition Root for the exchange process.

Run locally:
    uvicorn src.infrastructure.entrypoints.exchange_app:app --port 8000
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.application.services.order_book import OrderBook
from src.application.services.price_book import PriceBook, PriceSimulator
from src.domain.entities.order import OrderRequest, OrderType
from src.infrastructure.config import Settings, load_settings
from src.infrastructure.logging_config import configure_logging

LOG = logging.getLogger(__name__)


class OrderBody(BaseModel):
    symbol: str = Field(min_length=1)
    type: OrderType
    quantity: int = Field(gt=0)
    price: float = Field(gt=0)


class Broker:
    """Fan-out of partial price updates to every connected WebSocket client.

    A client whose send fails is dropped rather than allowed to stall the rest.
    """

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._clients.add(websocket)
            LOG.info("New client connected. Total: %d", len(self._clients))

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._clients:
                self._clients.discard(websocket)
                LOG.info("Client disconnected. Total: %d", len(self._clients))

    async def broadcast(self, prices: dict[str, float]) -> None:
        async with self._lock:
            clients = list(self._clients)
        if not clients:
            return

        message = json.dumps(prices)
        for websocket in clients:
            try:
                await websocket.send_text(message)
            except Exception as exc:
                LOG.warning("Dropping client after failed send: %s", exc)
                await self.unregister(websocket)

    def __len__(self) -> int:
        return len(self._clients)


def create_app(
    settings: Settings,
    book: Optional[PriceBook] = None,
    orders: Optional[OrderBook] = None,
) -> FastAPI:
    if book is None:
        book = PriceBook()
    if orders is None:
        orders = OrderBook()
    broker = Broker()
    simulator = PriceSimulator(
        book,
        broker.broadcast,
        tick_interval=settings.simulation_tick_seconds,
        chance=settings.price_change_chance,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        simulator.start()
        try:
            yield
        finally:
            await simulator.stop()

    app = FastAPI(title="Simulated Exchange", lifespan=lifespan)
    app.state.book = book
    app.state.orders = orders
    app.state.broker = broker
    app.state.simulator = simulator

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Origin", "Content-Type", "Authorization"],
            allow_credentials=True,
        )

    @app.get("/api/prices")
    async def get_prices():
        return book.prices()

    @app.get("/api/orders")
    async def get_orders():
        return [order.as_dict() for order in orders.all()]

    @app.post("/api/orders", status_code=201)
    async def add_order(body: OrderBody):
        order = orders.add(
            OrderRequest(
                symbol=body.symbol.upper().strip(),
                type=body.type,
                quantity=body.quantity,
                price=body.price,
            )
        )
        return order.as_dict()

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        await broker.register(websocket)
        try:
            while True:
                # receive-only channel for clients; inbound frames are ignored
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            await broker.unregister(websocket)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "simulating": simulator.running,
            "clients": len(broker),
        }

    return app


# ---------------------------------------------------------------------------
# Composition Root: wire all dependencies once at startup
# ---------------------------------------------------------------------------
_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

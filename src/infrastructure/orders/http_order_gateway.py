"""
Infrastructure adapter: exchange REST order endpoints (httpx) -> IOrderGateway.
"""

from datetime import datetime
from typing import Optional

import httpx

from src.domain.entities.order import Order, OrderRequest, OrderType
from src.domain.errors import OrderSubmissionError
from src.domain.ports.order_gateway_port import IOrderGateway


def _order_from_json(data: dict) -> Order:
    return Order(
        id=str(data["id"]),
        symbol=data["symbol"],
        type=OrderType(data["type"]),
        quantity=int(data["quantity"]),
        price=float(data["price"]),
        timestamp=datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00")),
    )


class HttpOrderGateway(IOrderGateway):
    ORDERS_PATH = "/api/orders"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    async def submit(self, request: OrderRequest) -> Order:
        body = {
            "symbol": request.symbol,
            "type": request.type.value,
            "quantity": request.quantity,
            "price": request.price,
        }
        try:
            async with self._client() as client:
                response = await client.post(self.ORDERS_PATH, json=body)
                response.raise_for_status()
                return _order_from_json(response.json())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            raise OrderSubmissionError(f"POST {self.ORDERS_PATH} failed: {exc}") from exc

    async def list_orders(self) -> list[Order]:
        try:
            async with self._client() as client:
                response = await client.get(self.ORDERS_PATH)
                response.raise_for_status()
                return [_order_from_json(item) for item in response.json()]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            raise OrderSubmissionError(f"GET {self.ORDERS_PATH} failed: {exc}") from exc

"""
Application service: the exchange's in-memory record of placed orders.
Orders are appended as received; there is no matching and no persistence.
"""

import uuid
from datetime import datetime, timezone

from src.domain.entities.order import Order, OrderRequest


class OrderBook:
    def __init__(self) -> None:
        self._orders: list[Order] = []

    def add(self, request: OrderRequest) -> Order:
        """Record *request*, assigning a uuid4 id and the current UTC timestamp."""
        order = Order(
            id=str(uuid.uuid4()),
            symbol=request.symbol,
            type=request.type,
            quantity=request.quantity,
            price=request.price,
            timestamp=datetime.now(timezone.utc),
        )
        self._orders.append(order)
        return order

    def all(self) -> list[Order]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

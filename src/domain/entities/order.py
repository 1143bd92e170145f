"""
Domain entities for recorded buy/sell orders.
Orders are recorded as placed; nothing here matches them against a book.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    type: OrderType
    quantity: int
    price: float


@dataclass(frozen=True)
class Order:
    id: str
    symbol: str
    type: OrderType
    quantity: int
    price: float
    timestamp: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "type": self.type.value,
            "quantity": self.quantity,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
        }

"""
Use-case: validate and submit a buy/sell order to the order gateway.
Depends only on Domain ports and entities; no infrastructure imports.
Orders are recorded by the gateway, never matched, and never touch the
price aggregator's state.
"""

import logging

from src.domain.entities.order import Order, OrderRequest, OrderType
from src.domain.errors import OrderSubmissionError
from src.domain.ports.order_gateway_port import IOrderGateway

LOG = logging.getLogger(__name__)


class PlaceOrderUseCase:
    def __init__(self, gateway: IOrderGateway) -> None:
        self._gateway = gateway

    async def execute(
        self,
        symbol: str,
        type: "OrderType | str",
        quantity: int,
        price: float,
    ) -> Order:
        """Submit an order for *symbol* (uppercased).

        Raises:
            ValueError: if *symbol* is blank, *type* is not BUY/SELL, or
                        *quantity* / *price* are not positive.
            OrderSubmissionError: if the gateway rejects or cannot be reached.
        """
        if not symbol or not symbol.strip():
            raise ValueError("symbol must be a non-empty string")
        try:
            order_type = OrderType(type.upper() if isinstance(type, str) else type)
        except ValueError:
            raise ValueError(f"order type must be BUY or SELL, got {type!r}") from None
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValueError(f"quantity must be a positive integer, got {quantity!r}")
        if price <= 0:
            raise ValueError(f"price must be positive, got {price!r}")

        request = OrderRequest(
            symbol=symbol.upper().strip(),
            type=order_type,
            quantity=quantity,
            price=float(price),
        )
        try:
            order = await self._gateway.submit(request)
        except OrderSubmissionError as exc:
            LOG.error("Order submission failed for %s: %s", request.symbol, exc)
            raise
        LOG.info("Placed %s order %s: %d %s @ %.2f",
                 order.type.value, order.id, order.quantity, order.symbol, order.price)
        return order

"""
Use-case: list placed orders for the orders table, with an optional symbol
filter and single-column sort.
Depends only on Domain ports and entities; no infrastructure imports.
"""

from typing import Optional

from src.domain.entities.order import Order
from src.domain.ports.order_gateway_port import IOrderGateway

SORTABLE_COLUMNS = ("symbol", "type", "quantity", "price", "timestamp")


class ListOrdersUseCase:
    def __init__(self, gateway: IOrderGateway) -> None:
        self._gateway = gateway

    async def execute(
        self,
        symbol_filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Order]:
        """Fetch orders, keep those whose symbol contains *symbol_filter*
        (case-insensitive) and sort by *sort_by*. Without *sort_by* orders
        keep the gateway's placement order.

        Raises:
            ValueError: if *sort_by* is not one of SORTABLE_COLUMNS.
            OrderSubmissionError: propagated from the gateway.
        """
        if sort_by is not None and sort_by not in SORTABLE_COLUMNS:
            raise ValueError(
                f"cannot sort by {sort_by!r}; expected one of: {', '.join(SORTABLE_COLUMNS)}"
            )

        orders = await self._gateway.list_orders()
        if symbol_filter and symbol_filter.strip():
            needle = symbol_filter.strip().upper()
            orders = [order for order in orders if needle in order.symbol.upper()]
        if sort_by is not None:
            orders = sorted(orders, key=lambda order: _sort_key(order, sort_by), reverse=descending)
        return list(orders)


def _sort_key(order: Order, column: str):
    value = getattr(order, column)
    return value.value if column == "type" else value

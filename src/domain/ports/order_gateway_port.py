"""
Port (interface) for the order submission collaborator.
Infrastructure adapters (e.g. HttpOrderGateway) must implement this interface.
"""

from abc import ABC, abstractmethod

from src.domain.entities.order import Order, OrderRequest


class IOrderGateway(ABC):
    @abstractmethod
    async def submit(self, request: OrderRequest) -> Order:
        """Record a new order; the gateway assigns its id and timestamp."""
        ...

    @abstractmethod
    async def list_orders(self) -> list[Order]: ...

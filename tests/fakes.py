"""
Fakes for the port interfaces and small async helpers shared by the tests.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.domain.entities.order import Order, OrderRequest
from src.domain.errors import ChannelError, OrderSubmissionError
from src.domain.ports.live_channel_port import ILiveUpdateChannel
from src.domain.ports.order_gateway_port import IOrderGateway
from src.domain.ports.price_source_port import IPriceSnapshotSource

CLOSE = object()


class FakeSnapshotSource(IPriceSnapshotSource):
    def __init__(self, prices: Optional[dict] = None, error: Optional[Exception] = None):
        self.prices = prices or {}
        self.error = error
        self.calls = 0

    async def fetch_prices(self) -> dict[str, float]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.prices)


class FakeChannel(ILiveUpdateChannel):
    """Every connect() gets its own queue. Tests put raw messages, CLOSE
    (clean remote close) or an exception instance (transport failure)."""

    def __init__(self, failing_connects: int = 0):
        self.connections: list[asyncio.Queue] = []
        self.closed = 0
        self.failing_connects = failing_connects
        self.attempts = 0

    @asynccontextmanager
    async def connect(self):
        self.attempts += 1
        if self.failing_connects > 0:
            self.failing_connects -= 1
            raise ChannelError("connection refused")
        queue: asyncio.Queue = asyncio.Queue()
        self.connections.append(queue)
        try:
            yield self._drain(queue)
        finally:
            self.closed += 1

    @staticmethod
    async def _drain(queue: asyncio.Queue):
        while True:
            item = await queue.get()
            if item is CLOSE:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    @property
    def current(self) -> asyncio.Queue:
        return self.connections[-1]


class IdleChannel(ILiveUpdateChannel):
    """Connects and then never delivers anything."""

    @asynccontextmanager
    async def connect(self):
        yield self._forever()

    @staticmethod
    async def _forever():
        await asyncio.Event().wait()
        yield ""


class FakeOrderGateway(IOrderGateway):
    def __init__(self, orders: Optional[list[Order]] = None, fail: bool = False):
        self.orders = list(orders or [])
        self.fail = fail
        self.submitted: list[OrderRequest] = []

    async def submit(self, request: OrderRequest) -> Order:
        if self.fail:
            raise OrderSubmissionError("exchange unavailable")
        self.submitted.append(request)
        order = Order(
            id=f"order-{len(self.orders) + 1}",
            symbol=request.symbol,
            type=request.type,
            quantity=request.quantity,
            price=request.price,
            timestamp=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
            + timedelta(minutes=len(self.orders)),
        )
        self.orders.append(order)
        return order

    async def list_orders(self) -> list[Order]:
        if self.fail:
            raise OrderSubmissionError("exchange unavailable")
        return list(self.orders)


class ManualClock:
    def __init__(self, start: datetime = datetime(2025, 3, 3, 9, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)

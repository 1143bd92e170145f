"""
Infrastructure adapter: websockets client -> ILiveUpdateChannel.

Connect failures and abnormal closes surface as ChannelError; a clean close
simply ends the message iterator. Leaving connect()'s context always closes
the socket.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import websockets
from websockets.exceptions import ConnectionClosedError, WebSocketException

from src.domain.errors import ChannelError
from src.domain.ports.live_channel_port import ILiveUpdateChannel, RawMessage


class WebSocketLiveUpdateChannel(ILiveUpdateChannel):
    """Receive-only client for the exchange's ``/ws`` price broadcast."""

    def __init__(self, url: str, open_timeout: float = 10.0) -> None:
        self._url = url
        self._open_timeout = open_timeout

    @property
    def url(self) -> str:
        return self._url

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncIterator[RawMessage]]:
        try:
            connection = await websockets.connect(self._url, open_timeout=self._open_timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            raise ChannelError(f"Could not connect to {self._url}: {exc}") from exc
        try:
            yield self._messages(connection)
        finally:
            await connection.close()

    async def _messages(self, connection) -> AsyncIterator[RawMessage]:
        try:
            async for message in connection:
                yield message
        except ConnectionClosedError as exc:
            raise ChannelError(f"Connection to {self._url} lost: {exc}") from exc

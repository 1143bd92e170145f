"""
Tests for WebSocketLiveUpdateChannel against a local websockets server.
"""

import socket

import pytest
import websockets

from src.domain.errors import ChannelError
from src.infrastructure.price_feed.websocket_channel import WebSocketLiveUpdateChannel


def free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_yields_messages_until_clean_close():
    async def handler(connection):
        await connection.send('{"AAPL": 150.0}')
        await connection.send('{"TSLA": 700.0}')

    port = free_port()
    async with websockets.serve(handler, "127.0.0.1", port):
        channel = WebSocketLiveUpdateChannel(f"ws://127.0.0.1:{port}")
        async with channel.connect() as messages:
            received = [message async for message in messages]

    assert received == ['{"AAPL": 150.0}', '{"TSLA": 700.0}']


@pytest.mark.asyncio
async def test_refused_connection_raises_channel_error():
    channel = WebSocketLiveUpdateChannel(f"ws://127.0.0.1:{free_port()}", open_timeout=1.0)
    with pytest.raises(ChannelError):
        async with channel.connect():
            pass

"""
Port (interface) for the persistent live price-update channel.
Infrastructure adapters (e.g. WebSocketLiveUpdateChannel) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, AsyncIterator, Union

RawMessage = Union[str, bytes]


class ILiveUpdateChannel(ABC):
    @abstractmethod
    def connect(self) -> AsyncContextManager[AsyncIterator[RawMessage]]:
        """Open one connection to the channel.

        The context value is an async iterator of raw inbound messages, each a
        JSON object mapping a subset of symbols to their new price. The iterator
        ends when the remote side closes; transport failures raise. Leaving the
        context closes the connection.
        """
        ...

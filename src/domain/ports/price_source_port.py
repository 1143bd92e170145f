"""
Port (interface) for one-shot price snapshot providers.
Infrastructure adapters (e.g. HttpPriceSnapshotSource) must implement this interface.
"""

from abc import ABC, abstractmethod


class IPriceSnapshotSource(ABC):
    @abstractmethod
    async def fetch_prices(self) -> dict[str, float]:
        """Return the current price of every known symbol.

        Raises:
            SnapshotFetchError: on network or payload parse failure.
        """
        ...

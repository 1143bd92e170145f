"""
Infrastructure adapter: exchange REST price snapshot (httpx) -> IPriceSnapshotSource.
All httpx details are confined here; callers only ever see SnapshotFetchError.
"""

from typing import Optional

import httpx

from src.domain.entities.price_state import coerce_price_map
from src.domain.errors import SnapshotFetchError
from src.domain.ports.price_source_port import IPriceSnapshotSource


class HttpPriceSnapshotSource(IPriceSnapshotSource):
    """GETs ``{base_url}/api/prices`` and returns the symbol -> price object."""

    PRICES_PATH = "/api/prices"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url:  Exchange API root, e.g. 'http://localhost:8000'.
            timeout:   Request timeout in seconds.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def fetch_prices(self) -> dict[str, float]:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self.PRICES_PATH)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SnapshotFetchError(f"GET {self.PRICES_PATH} failed: {exc}") from exc

        try:
            return coerce_price_map(payload)
        except ValueError as exc:
            raise SnapshotFetchError(f"Unexpected price snapshot payload: {exc}") from exc

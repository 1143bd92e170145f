"""
Use-case: build the sidebar rows (current / previous / open / % change) for
every known symbol.
Depends only on Domain entities; no infrastructure imports.
"""

from dataclasses import dataclass
from typing import Mapping

from src.domain.entities.price_state import SymbolPriceState


@dataclass(frozen=True)
class StockOverviewRow:
    symbol: str
    current: float
    previous: float
    open: float
    change_percent: float
    direction: str


class GetStockOverviewUseCase:
    def execute(self, stocks: Mapping[str, SymbolPriceState]) -> list[StockOverviewRow]:
        """Return one row per symbol, sorted by symbol.

        change_percent is measured against the session-open price and rounded
        to two decimals.
        """
        return [
            StockOverviewRow(
                symbol=symbol,
                current=state.current,
                previous=state.previous,
                open=state.open,
                change_percent=round(state.change_percent, 2),
                direction=state.direction,
            )
            for symbol, state in sorted(stocks.items())
        ]

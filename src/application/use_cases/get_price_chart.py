"""
Use-case: resample the price history for the chart, restricted to the
selected symbols.
Depends only on Domain entities and application services; no infrastructure imports.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from src.application.services.history_resampler import resample
from src.application.services.symbol_selection import SymbolSelection
from src.domain.entities.chart_series import RangeMode
from src.domain.entities.price_state import HistorySnapshot


@dataclass(frozen=True)
class PriceChart:
    range: RangeMode
    symbols: tuple[str, ...]
    x_key: str
    points: tuple[HistorySnapshot, ...]
    labels: tuple[str, ...]

    @property
    def empty(self) -> bool:
        """True when the caller must render the explicit empty state."""
        return not self.symbols or not self.points

    def as_dict(self) -> dict:
        return {
            "range": self.range.value,
            "symbols": list(self.symbols),
            "x_key": self.x_key,
            "empty": self.empty,
            "points": [
                dict(point.as_dict(), label=label)
                for point, label in zip(self.points, self.labels)
            ],
        }


class GetPriceChartUseCase:
    def execute(
        self,
        history: Iterable[HistorySnapshot],
        mode: "RangeMode | str",
        selection: SymbolSelection,
        now: Optional[datetime] = None,
    ) -> PriceChart:
        """Resample *history* for *mode* and keep only the selected symbols' prices.

        No symbols selected or no history yields an empty chart (no points),
        never a chart of empty series.

        Raises:
            ValueError: if *mode* is not a known range mode.
        """
        series = resample(history, mode, now=now)
        symbols = selection.symbols
        mode = RangeMode.parse(mode)
        if not symbols or not series.points:
            return PriceChart(mode, symbols, series.x_key, (), ())

        points = tuple(
            HistorySnapshot(
                date=point.date,
                time=point.time,
                bucket=point.bucket,
                prices={s: point.prices[s] for s in symbols if s in point.prices},
            )
            for point in series.points
        )
        return PriceChart(mode, symbols, series.x_key, points, tuple(series.labels()))

"""
Domain entities for resampled chart series.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from src.domain.entities.price_state import HistorySnapshot


class RangeMode(str, Enum):
    LAST_HOUR = "1h"
    LAST_DAY = "24h"
    LAST_WEEK = "7d"
    LAST_30_DAYS = "30d"
    LAST_MONTH = "1mo"
    WEEKLY = "week"
    MONTHLY = "month"
    ALL = "all"

    @classmethod
    def parse(cls, value: "str | RangeMode") -> "RangeMode":
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown range mode {value!r}; expected one of: {valid}") from None


@dataclass(frozen=True)
class ResampledSeries:
    points: tuple[HistorySnapshot, ...]
    x_key: str
    format_x: Callable[[str], str]

    def x_values(self) -> list[str]:
        return [getattr(point, self.x_key) for point in self.points]

    def labels(self) -> list[str]:
        """Axis labels for every point, in order."""
        return [self.format_x(value) for value in self.x_values()]

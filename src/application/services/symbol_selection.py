"""
Application service: the set of symbols chosen for charting.

Order is kept only so chart legends and colours stay stable; it has no effect
on which points the resampler returns.
"""

from typing import Iterable, Iterator

DEFAULT_SELECTION = ("AAPL",)


def _normalise(symbol: str) -> str:
    if not symbol or not symbol.strip():
        raise ValueError("symbol must be a non-empty string")
    return symbol.upper().strip()


class SymbolSelection:
    def __init__(self, symbols: Iterable[str] = DEFAULT_SELECTION) -> None:
        self._symbols: dict[str, None] = {}
        self.replace(symbols)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self._symbols)

    def select(self, symbol: str) -> None:
        self._symbols.setdefault(_normalise(symbol), None)

    def deselect(self, symbol: str) -> None:
        self._symbols.pop(_normalise(symbol), None)

    def toggle(self, symbol: str) -> bool:
        """Flip *symbol*'s membership; returns True if it is now selected."""
        symbol = _normalise(symbol)
        if symbol in self._symbols:
            del self._symbols[symbol]
            return False
        self._symbols[symbol] = None
        return True

    def replace(self, symbols: Iterable[str]) -> None:
        self._symbols = dict.fromkeys(_normalise(symbol) for symbol in symbols)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper().strip() in self._symbols

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self._symbols)

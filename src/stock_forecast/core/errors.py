"""Exception types shared across modules."""

from __future__ import annotations


class InvalidSeriesError(ValueError):
    """Raised when a price history breaks ordering or value constraints."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid series: {reason}")
        self.reason = reason


class DataFetchError(RuntimeError):
    """Raised when the market-data provider cannot deliver usable data."""

    def __init__(self, symbol: str, message: str) -> None:
        super().__init__(f"{symbol}: {message}")
        self.symbol = symbol

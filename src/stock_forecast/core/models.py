"""Shared data models used across modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from stock_forecast.core.errors import InvalidSeriesError


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Market(str, Enum):
    US = "US"
    IN = "IN"


@dataclass(frozen=True, slots=True)
class PriceBar:
    timestamp: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def upper_shadow(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_shadow(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class PriceSeries(Sequence[PriceBar]):
    """Chronological, validated, read-only sequence of bars."""

    __slots__ = ("_bars",)

    def __init__(self, bars: Iterable[PriceBar] = ()) -> None:
        self._bars: Tuple[PriceBar, ...] = tuple(bars)
        _validate(self._bars)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[float]]) -> "PriceSeries":
        """Build from ``(timestamp, open, high, low, close, volume)`` rows."""
        return cls(
            PriceBar(
                timestamp=int(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=int(row[5]),
            )
            for row in rows
        )

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return PriceSeries._trusted(self._bars[index])
        return self._bars[index]

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[PriceBar]:
        return iter(self._bars)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PriceSeries):
            return self._bars == other._bars
        return NotImplemented

    def __repr__(self) -> str:
        return f"PriceSeries(len={len(self._bars)})"

    @classmethod
    def _trusted(cls, bars: Tuple[PriceBar, ...]) -> "PriceSeries":
        # slices of a validated series stay valid
        series = cls.__new__(cls)
        series._bars = bars
        return series

    def tail(self, count: int) -> "PriceSeries":
        if count <= 0:
            return PriceSeries._trusted(())
        return self[-count:]

    def latest(self) -> PriceBar:
        return self._bars[-1]

    @property
    def closes(self) -> List[float]:
        return [bar.close for bar in self._bars]

    @property
    def highs(self) -> List[float]:
        return [bar.high for bar in self._bars]

    @property
    def lows(self) -> List[float]:
        return [bar.low for bar in self._bars]

    @property
    def volumes(self) -> List[int]:
        return [bar.volume for bar in self._bars]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "timestamp": [bar.timestamp for bar in self._bars],
                "open": [bar.open for bar in self._bars],
                "high": self.highs,
                "low": self.lows,
                "close": self.closes,
                "volume": self.volumes,
            }
        ).set_index("timestamp")


def _validate(bars: Tuple[PriceBar, ...]) -> None:
    previous: Optional[int] = None
    for index, bar in enumerate(bars):
        prices = (bar.open, bar.high, bar.low, bar.close)
        if not all(math.isfinite(p) and p > 0 for p in prices):
            raise InvalidSeriesError(f"bar {index} has a non-positive or non-finite price")
        if not (bar.low <= min(bar.open, bar.close) and max(bar.open, bar.close) <= bar.high):
            raise InvalidSeriesError(f"bar {index} violates low <= open,close <= high")
        if bar.volume < 0:
            raise InvalidSeriesError(f"bar {index} has negative volume")
        if previous is not None and bar.timestamp <= previous:
            raise InvalidSeriesError(
                f"timestamps must be strictly increasing (bar {index}: {bar.timestamp} <= {previous})"
            )
        previous = bar.timestamp


@dataclass(frozen=True, slots=True)
class MacdValues:
    line: float
    signal: float
    histogram: float


@dataclass(frozen=True, slots=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True, slots=True)
class StochasticValues:
    k: float
    d: float


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    sma20: float
    sma50: float
    ema12: float
    ema26: float
    rsi: float
    macd: MacdValues
    bollinger: BollingerBands
    stochastic: StochasticValues
    atr: float = 0.0
    volatility: float = 0.0
    momentum: float = 0.0
    volume_ratio: float = 1.0


@dataclass(frozen=True, slots=True)
class PatternFinding:
    name: str
    direction: Trend
    strength: float


@dataclass(frozen=True, slots=True)
class SupportResistanceLevels:
    support: Tuple[float, ...] = ()
    resistance: Tuple[float, ...] = ()


@dataclass(frozen=True, slots=True)
class PredictionResult:
    predicted_price: float
    confidence: float
    trend: Trend
    signals: Tuple[str, ...] = ()
    sentiment_score: float = 0.0
    volatility: float = 0.0

    def change_percent(self, current_price: float) -> float:
        if current_price <= 0:
            return 0.0
        return (self.predicted_price - current_price) / current_price * 100


@dataclass(slots=True)
class StockQuote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    market: Market
    currency: str
    volume: Optional[int] = None
    market_cap: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None

"""Indicator calculation helpers built on top of pandas.

Every function degrades to a neutral constant when the window is too short
instead of raising, so a prediction can always be produced for instruments
with little history.
"""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from stock_forecast.core.config import IndicatorConfig
from stock_forecast.core.models import (
    BollingerBands,
    IndicatorSnapshot,
    MacdValues,
    PriceSeries,
    StochasticValues,
)

NEUTRAL_RSI = 50.0
NEUTRAL_STOCHASTIC = 50.0
DEFAULT_VOLATILITY = 0.02


def _as_series(values: Sequence[float]) -> pd.Series:
    return pd.Series(list(values), dtype="float64")


def sma(prices: Sequence[float]) -> float:
    """Arithmetic mean of the whole window, 0.0 when empty."""
    series = _as_series(prices)
    if series.empty:
        return 0.0
    return float(series.mean())


def ema(prices: Sequence[float], period: int) -> float:
    """EMA seeded with the first price and smoothed across the whole input.

    The caller picks the window: the multiplier is ``2 / (period + 1)`` but
    every supplied price takes part. Inputs shorter than ``period`` return
    the last price.
    """
    if not prices:
        return 0.0
    if len(prices) < period:
        return float(prices[-1])
    return float(_as_series(prices).ewm(span=period, adjust=False).mean().iloc[-1])


def rsi(prices: Sequence[float], period: int = 14) -> float:
    if len(prices) < period + 1:
        return NEUTRAL_RSI
    delta = _as_series(prices).diff().dropna().tail(period)
    avg_gain = float(delta.clip(lower=0).sum()) / period
    avg_loss = float(-delta.clip(upper=0).sum()) / period
    if avg_loss == 0:
        # a window with no movement at all stays neutral
        return NEUTRAL_RSI if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def macd_history(prices: Sequence[float], fast: int = 12, slow: int = 26) -> List[float]:
    """MACD line re-derived from scratch on every prefix ending at ``slow``..n-1."""
    history: List[float] = []
    for end in range(slow, len(prices)):
        window = prices[: end + 1]
        history.append(ema(window, fast) - ema(window, slow))
    return history


def macd(prices: Sequence[float], fast: int = 12, slow: int = 26, signal: int = 9) -> MacdValues:
    line = ema(prices, fast) - ema(prices, slow)
    signal_line = ema(macd_history(prices, fast, slow), signal)
    return MacdValues(line=line, signal=signal_line, histogram=line - signal_line)


def bollinger_bands(prices: Sequence[float], period: int = 20, width: float = 2.0) -> BollingerBands:
    window = _as_series(prices).tail(period)
    if window.empty:
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0)
    middle = float(window.mean())
    deviation = float(window.std(ddof=0))
    if not deviation > 0:
        deviation = 0.0
    return BollingerBands(
        upper=middle + width * deviation,
        middle=middle,
        lower=middle - width * deviation,
    )


def _check_aligned(*columns: Sequence[float]) -> None:
    if len({len(column) for column in columns}) > 1:
        raise ValueError("high/low/close inputs must have the same length")


def stochastic_k_history(
    highs: Sequence[float], lows: Sequence[float], closes: Sequence[float], period: int = 14
) -> List[float]:
    """%K re-evaluated over the trailing window at every index from ``period - 1``."""
    _check_aligned(highs, lows, closes)
    highest = _as_series(highs).rolling(period).max()
    lowest = _as_series(lows).rolling(period).min()
    price_range = highest - lowest
    k = ((_as_series(closes) - lowest) / price_range * 100).where(price_range != 0, NEUTRAL_STOCHASTIC)
    return k.iloc[period - 1 :].tolist()


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
    smooth: int = 3,
) -> StochasticValues:
    _check_aligned(highs, lows, closes)
    if len(closes) < period:
        return StochasticValues(k=NEUTRAL_STOCHASTIC, d=NEUTRAL_STOCHASTIC)
    k_values = stochastic_k_history(highs, lows, closes, period)
    return StochasticValues(k=k_values[-1], d=sma(k_values[-smooth:]))


def average_true_range(bars: PriceSeries, period: int = 14) -> float:
    """Mean true range of the last ``period`` bars that have a previous close."""
    if len(bars) < period or len(bars) < 2:
        return 0.0
    df = bars.to_frame()
    prev_close = df["close"].shift(1)
    true_range = pd.concat(
        [
            df["high"] - df["low"],
            (df["high"] - prev_close).abs(),
            (df["low"] - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1)
    # the first bar has no previous close
    return float(true_range.iloc[1:].tail(period).mean())


def volatility(prices: Sequence[float]) -> float:
    """Population standard deviation of simple returns."""
    if len(prices) < 2:
        return DEFAULT_VOLATILITY
    returns = _as_series(prices).pct_change().dropna()
    return float(returns.std(ddof=0))


def momentum(prices: Sequence[float], period: int = 5) -> float:
    if len(prices) < period or period <= 0:
        return 0.0
    past = prices[-period]
    return (prices[-1] - past) / past


def volume_ratio(current_volume: float, volumes: Sequence[float]) -> float:
    average = sma(volumes)
    if average <= 0:
        return 1.0
    return current_volume / average


class IndicatorCalculator:
    """Build an IndicatorSnapshot for the latest bar of a series."""

    def __init__(self, config: IndicatorConfig | None = None) -> None:
        self._cfg = config or IndicatorConfig()

    def calculate(self, series: PriceSeries, current_volume: float) -> IndicatorSnapshot:
        cfg = self._cfg
        closes = series.closes
        highs = series.highs
        lows = series.lows

        return IndicatorSnapshot(
            sma20=sma(closes[-cfg.sma_short :]),
            sma50=sma(closes[-cfg.sma_long :]),
            ema12=ema(closes, cfg.ema_fast),
            ema26=ema(closes, cfg.ema_slow),
            rsi=rsi(closes, cfg.rsi_period),
            macd=macd(closes, cfg.ema_fast, cfg.ema_slow, cfg.macd_signal),
            bollinger=bollinger_bands(closes, cfg.bollinger_period),
            stochastic=stochastic(highs, lows, closes, cfg.stochastic_period, cfg.stochastic_smooth),
            atr=average_true_range(series.tail(cfg.atr_period + 1), cfg.atr_period),
            volatility=volatility(closes[-cfg.volatility_window :]),
            momentum=momentum(closes, cfg.momentum_period),
            volume_ratio=volume_ratio(current_volume, series.volumes[-cfg.volume_window :]),
        )

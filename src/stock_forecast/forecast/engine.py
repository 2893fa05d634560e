"""Price forecast that blends technical indicators into one heuristic score."""

from __future__ import annotations

import logging
import math
import random
from typing import Protocol

from stock_forecast.core.config import IndicatorConfig, PredictionConfig
from stock_forecast.core.models import PredictionResult, PriceSeries, Trend
from stock_forecast.indicators.calculator import IndicatorCalculator
from stock_forecast.indicators.levels import find_support_resistance
from stock_forecast.indicators.patterns import PatternRecognizer
from stock_forecast.signals.sentiment import SentimentAggregator

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_SIGNAL = "Insufficient historical data"
FALLBACK_CONFIDENCE = 0.3
FALLBACK_MAX_MOVE = 0.01
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95
TIME_DECAY_MINUTES = 120.0
LARGE_CAP_THRESHOLD = 1e9
LARGE_CAP_FACTOR = 0.8
SMALL_CAP_FACTOR = 1.2
RANDOM_WEIGHT = 0.2
FULL_QUALITY_BARS = 100
CONFIDENCE_PRECISION = 2


class RandomSource(Protocol):
    def random(self) -> float:  # pragma: no cover - protocol
        ...


def uniform(rng: RandomSource, low: float, high: float) -> float:
    return low + (high - low) * rng.random()


class PredictionEngine:
    """Stateless forecaster; the only moving part is the injected random source."""

    def __init__(
        self,
        config: PredictionConfig | None = None,
        indicator_config: IndicatorConfig | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._cfg = config or PredictionConfig()
        self._indicator_cfg = indicator_config or IndicatorConfig()
        self._calculator = IndicatorCalculator(self._indicator_cfg)
        self._patterns = PatternRecognizer()
        self._sentiment = SentimentAggregator()
        self._rng: RandomSource = rng or random.Random(self._cfg.seed)

    def predict(
        self,
        current_price: float,
        history: PriceSeries,
        volume: int = 0,
        market_cap: float = 0.0,
        time_horizon_minutes: float | None = None,
    ) -> PredictionResult:
        horizon = (
            self._cfg.default_horizon_minutes if time_horizon_minutes is None else time_horizon_minutes
        )
        _validate_inputs(current_price, volume, market_cap, horizon)
        if not isinstance(history, PriceSeries):
            history = PriceSeries(history)

        if len(history) < self._cfg.min_history_bars:
            return self._fallback(current_price, len(history))

        snapshot = self._calculator.calculate(history, volume)
        levels = find_support_resistance(history.highs, history.lows)
        findings = self._patterns.detect(history.tail(self._indicator_cfg.pattern_window))
        assessment = self._sentiment.assess(current_price, snapshot, levels, findings)

        vol = snapshot.volatility
        time_decay = math.exp(-horizon / TIME_DECAY_MINUTES)
        cap_factor = LARGE_CAP_FACTOR if market_cap > LARGE_CAP_THRESHOLD else SMALL_CAP_FACTOR
        base_change = assessment.score * vol * time_decay * cap_factor
        random_component = uniform(self._rng, -0.5, 0.5) * vol * RANDOM_WEIGHT
        predicted = current_price * (1 + base_change + random_component)

        confidence = confidence_score(len(history), snapshot.volume_ratio, vol, time_decay)
        signals = tuple(assessment.signals[: self._cfg.max_signals])

        logger.debug(
            "score=%.4f vol=%.5f decay=%.4f cap=%.1f atr=%.4f momentum=%.4f levels=%s patterns=%s",
            assessment.score,
            vol,
            time_decay,
            cap_factor,
            snapshot.atr,
            snapshot.momentum,
            levels,
            [f.name for f in findings],
        )
        return PredictionResult(
            predicted_price=round_price(predicted, self._cfg.price_precision),
            confidence=round(confidence, CONFIDENCE_PRECISION),
            trend=assessment.trend,
            signals=signals,
            sentiment_score=assessment.score,
            volatility=vol,
        )

    def _fallback(self, current_price: float, bars: int) -> PredictionResult:
        logger.debug("only %d bars available, using random walk", bars)
        walk = uniform(self._rng, -FALLBACK_MAX_MOVE, FALLBACK_MAX_MOVE)
        if walk > 0:
            trend = Trend.BULLISH
        elif walk < 0:
            trend = Trend.BEARISH
        else:
            trend = Trend.NEUTRAL
        return PredictionResult(
            predicted_price=round_price(current_price * (1 + walk), self._cfg.price_precision),
            confidence=FALLBACK_CONFIDENCE,
            trend=trend,
            signals=(INSUFFICIENT_DATA_SIGNAL,),
        )


def confidence_score(bars: int, volume_ratio: float, vol: float, time_decay: float) -> float:
    """Weighted blend of data, volume, volatility and horizon quality."""
    data_quality = min(1.0, bars / FULL_QUALITY_BARS)
    volume_confidence = min(1.0, volume_ratio)
    volatility_confidence = 1 - min(1.0, vol * 10)
    composite = (
        0.3 * data_quality
        + 0.2 * volume_confidence
        + 0.3 * volatility_confidence
        + 0.2 * time_decay
    )
    return clamp(composite * 0.8 + 0.2, MIN_CONFIDENCE, MAX_CONFIDENCE)


def round_price(value: float, precision: int) -> float:
    """Round to ``precision`` decimals; sub-unit prices keep that many significant digits."""
    rounded = round(value, precision)
    if rounded > 0 or value <= 0:
        return rounded
    return float(f"{value:.{max(precision, 1)}g}")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _validate_inputs(current_price: float, volume: int, market_cap: float, horizon: float) -> None:
    if not (math.isfinite(current_price) and current_price > 0):
        raise ValueError(f"current price must be positive and finite, got {current_price}")
    if not (math.isfinite(horizon) and horizon > 0):
        raise ValueError(f"time horizon must be positive minutes, got {horizon}")
    if volume < 0:
        raise ValueError(f"volume must be non-negative, got {volume}")
    if not math.isfinite(market_cap) or market_cap < 0:
        raise ValueError(f"market cap must be non-negative, got {market_cap}")


def predict(
    current_price: float,
    history: PriceSeries,
    volume: int = 0,
    market_cap: float = 0.0,
    time_horizon_minutes: float = 30.0,
    rng: RandomSource | None = None,
) -> PredictionResult:
    """Forecast with a fresh default engine."""
    return PredictionEngine(rng=rng).predict(
        current_price, history, volume, market_cap, time_horizon_minutes
    )

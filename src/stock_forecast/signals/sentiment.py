"""Sentiment scoring that fuses indicators, levels and candlestick patterns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from stock_forecast.core.models import (
    IndicatorSnapshot,
    PatternFinding,
    SupportResistanceLevels,
    Trend,
)
from stock_forecast.indicators.levels import is_near

TREND_THRESHOLD = 0.1


@dataclass(slots=True)
class SentimentAssessment:
    score: float = 0.0
    signals: List[str] = field(default_factory=list)

    @property
    def trend(self) -> Trend:
        if self.score > TREND_THRESHOLD:
            return Trend.BULLISH
        if self.score < -TREND_THRESHOLD:
            return Trend.BEARISH
        return Trend.NEUTRAL


class SentimentAggregator:
    """Accumulate a signed sentiment score and the reasons behind it.

    Contributions are applied in a fixed order. The volume check rescales
    whatever has been accumulated before it, so moving it changes the score.
    """

    def assess(
        self,
        price: float,
        snapshot: IndicatorSnapshot,
        levels: SupportResistanceLevels,
        patterns: Sequence[PatternFinding],
    ) -> SentimentAssessment:
        result = SentimentAssessment()
        self._moving_averages(result, price, snapshot)
        self._ema_trend(result, snapshot)
        self._rsi(result, snapshot.rsi)
        self._macd(result, snapshot)
        self._stochastic(result, snapshot)
        self._volume(result, snapshot.volume_ratio)
        self._levels(result, price, levels)
        self._patterns(result, patterns)
        return result

    @staticmethod
    def _moving_averages(result: SentimentAssessment, price: float, snapshot: IndicatorSnapshot) -> None:
        if price > snapshot.sma20 > snapshot.sma50:
            result.score += 0.3
            result.signals.append("Bullish MA crossover")
        elif price < snapshot.sma20 < snapshot.sma50:
            result.score -= 0.3
            result.signals.append("Bearish MA crossover")

    @staticmethod
    def _ema_trend(result: SentimentAssessment, snapshot: IndicatorSnapshot) -> None:
        if snapshot.ema12 > snapshot.ema26:
            result.score += 0.2
            result.signals.append("EMA uptrend (12 above 26)")
        elif snapshot.ema12 < snapshot.ema26:
            result.score -= 0.2
            result.signals.append("EMA downtrend (12 below 26)")

    @staticmethod
    def _rsi(result: SentimentAssessment, value: float) -> None:
        if value > 70:
            result.score -= 0.25
            result.signals.append(f"Overbought (RSI {value:.1f})")
        elif value < 30:
            result.score += 0.25
            result.signals.append(f"Oversold (RSI {value:.1f})")

    @staticmethod
    def _macd(result: SentimentAssessment, snapshot: IndicatorSnapshot) -> None:
        macd = snapshot.macd
        if macd.line > macd.signal and macd.histogram > 0:
            result.score += 0.2
            result.signals.append("MACD bullish momentum")
        elif macd.line < macd.signal and macd.histogram < 0:
            result.score -= 0.2
            result.signals.append("MACD bearish momentum")

    @staticmethod
    def _stochastic(result: SentimentAssessment, snapshot: IndicatorSnapshot) -> None:
        stoch = snapshot.stochastic
        if stoch.k > 80 and stoch.d > 80:
            result.score -= 0.15
            result.signals.append("Stochastic overbought")
        elif stoch.k < 20 and stoch.d < 20:
            result.score += 0.15
            result.signals.append("Stochastic oversold")

    @staticmethod
    def _volume(result: SentimentAssessment, ratio: float) -> None:
        if ratio > 1.5:
            result.score *= 1.2
            result.signals.append("High volume confirmation")
        elif ratio < 0.5:
            result.score *= 0.8
            result.signals.append("Low volume warning")

    @staticmethod
    def _levels(result: SentimentAssessment, price: float, levels: SupportResistanceLevels) -> None:
        if is_near(price, levels.support):
            result.score += 0.1
            result.signals.append("Near support level")
        if is_near(price, levels.resistance):
            result.score -= 0.1
            result.signals.append("Near resistance level")

    @staticmethod
    def _patterns(result: SentimentAssessment, patterns: Sequence[PatternFinding]) -> None:
        for pattern in patterns:
            if pattern.direction == Trend.BULLISH:
                result.score += pattern.strength
            elif pattern.direction == Trend.BEARISH:
                result.score -= pattern.strength
            result.signals.append(f"{pattern.name} pattern detected")

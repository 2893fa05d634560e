"""Candlestick pattern checks on the most recent one or two bars."""

from __future__ import annotations

from typing import List, Sequence

from stock_forecast.core.models import PatternFinding, PriceBar, Trend

HAMMER = "Hammer"
DOJI = "Doji"
BULLISH_ENGULFING = "Bullish Engulfing"
BEARISH_ENGULFING = "Bearish Engulfing"

HAMMER_STRENGTH = 0.15
DOJI_STRENGTH = 0.1
ENGULFING_STRENGTH = 0.2


def is_hammer(bar: PriceBar) -> bool:
    body = bar.body
    return bar.lower_shadow > 2 * body and bar.upper_shadow < 0.5 * body


def is_doji(bar: PriceBar) -> bool:
    return bar.body < 0.1 * (bar.high - bar.low)


def is_bullish_engulfing(previous: PriceBar, current: PriceBar) -> bool:
    return (
        previous.is_bearish
        and current.is_bullish
        and current.open < previous.close
        and current.close > previous.open
    )


def is_bearish_engulfing(previous: PriceBar, current: PriceBar) -> bool:
    return (
        previous.is_bullish
        and current.is_bearish
        and current.open > previous.close
        and current.close < previous.open
    )


class PatternRecognizer:
    """Return every pattern that applies; findings are not mutually exclusive."""

    def detect(self, bars: Sequence[PriceBar]) -> List[PatternFinding]:
        findings: List[PatternFinding] = []
        if not bars:
            return findings

        last = bars[-1]
        if is_hammer(last):
            findings.append(PatternFinding(HAMMER, Trend.BULLISH, HAMMER_STRENGTH))
        if is_doji(last):
            findings.append(PatternFinding(DOJI, Trend.NEUTRAL, DOJI_STRENGTH))

        if len(bars) >= 2:
            previous = bars[-2]
            if is_bullish_engulfing(previous, last):
                findings.append(PatternFinding(BULLISH_ENGULFING, Trend.BULLISH, ENGULFING_STRENGTH))
            elif is_bearish_engulfing(previous, last):
                findings.append(PatternFinding(BEARISH_ENGULFING, Trend.BEARISH, ENGULFING_STRENGTH))
        return findings

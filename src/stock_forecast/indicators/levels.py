"""Local-extrema support/resistance scan."""

from __future__ import annotations

from typing import List, Sequence

from stock_forecast.core.models import SupportResistanceLevels

MAX_LEVELS = 3


def _is_local_min(values: Sequence[float], index: int) -> bool:
    pivot = values[index]
    return all(pivot < values[index + offset] for offset in (-2, -1, 1, 2))


def _is_local_max(values: Sequence[float], index: int) -> bool:
    pivot = values[index]
    return all(pivot > values[index + offset] for offset in (-2, -1, 1, 2))


def find_support_resistance(
    highs: Sequence[float], lows: Sequence[float], max_levels: int = MAX_LEVELS
) -> SupportResistanceLevels:
    """Mark pivots strictly beyond both neighbours at offsets 1 and 2.

    No smoothing is applied, so noisy series yield noisy levels. Only the
    ``max_levels`` most recent hits of each kind are kept.
    """
    if len(highs) != len(lows):
        raise ValueError("highs and lows must have the same length")

    support: List[float] = []
    resistance: List[float] = []
    for index in range(2, len(lows) - 2):
        if _is_local_min(lows, index):
            support.append(lows[index])
        if _is_local_max(highs, index):
            resistance.append(highs[index])

    return SupportResistanceLevels(
        support=tuple(support[-max_levels:]) if max_levels > 0 else (),
        resistance=tuple(resistance[-max_levels:]) if max_levels > 0 else (),
    )


def is_near(price: float, levels: Sequence[float], tolerance: float = 0.02) -> bool:
    if price <= 0:
        return False
    return any(abs(price - level) / price < tolerance for level in levels)

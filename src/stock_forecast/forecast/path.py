"""Intermediate chart points between the current and predicted price."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from stock_forecast.forecast.engine import RandomSource, uniform

MIN_POINTS = 5
MAX_POINTS = 30
DEFAULT_PATH_VOLATILITY = 0.005
NOISE_WEIGHT = 0.3


@dataclass(frozen=True, slots=True)
class ProjectedPoint:
    timestamp: int  # epoch milliseconds
    price: float


def point_count(horizon_minutes: float) -> int:
    return min(MAX_POINTS, max(MIN_POINTS, int(horizon_minutes // 2)))


def project_path(
    current_price: float,
    predicted_price: float,
    horizon_minutes: float,
    volatility: float,
    rng: RandomSource,
    start_ms: int,
    precision: int = 2,
) -> List[ProjectedPoint]:
    """Linear walk to the target with proportional noise on each step.

    ``volatility`` is a fraction (the day's absolute change percent / 100 in
    the dashboard); zero falls back to 0.5%. The last point carries noise as
    well, so it is close to but not pinned at ``predicted_price``.
    """
    points = point_count(horizon_minutes)
    step = (predicted_price - current_price) / points
    spacing_ms = horizon_minutes * 60_000 / points
    noise_scale = volatility or DEFAULT_PATH_VOLATILITY

    path: List[ProjectedPoint] = []
    for i in range(1, points + 1):
        base = current_price + step * i
        noise = uniform(rng, -0.5, 0.5) * noise_scale * base * NOISE_WEIGHT
        path.append(
            ProjectedPoint(
                timestamp=start_ms + int(round(i * spacing_ms)),
                price=round(base + noise, precision),
            )
        )
    return path

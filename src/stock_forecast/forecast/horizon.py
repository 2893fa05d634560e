"""Prediction horizon conversions."""

from __future__ import annotations

import re

_MINUTES_PER_UNIT = {
    "seconds": 1 / 60,
    "minutes": 1.0,
    "hours": 60.0,
    "days": 24 * 60.0,
    "weeks": 7 * 24 * 60.0,
    "months": 30 * 24 * 60.0,
    "years": 365 * 24 * 60.0,
}

_SHORT_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
    "mo": "months",
    "y": "years",
}

_HORIZON_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$")


def to_minutes(value: float, unit: str) -> float:
    try:
        return value * _MINUTES_PER_UNIT[unit.lower()]
    except KeyError:
        raise ValueError(f"Unsupported horizon unit: {unit}") from None


def parse_horizon(text: str) -> float:
    """Parse ``"30m"``, ``"2h"``, ``"1mo"`` or a bare number of minutes."""
    match = _HORIZON_RE.match(text.lower())
    if not match:
        raise ValueError(f"Invalid horizon: {text!r}")
    value, suffix = float(match.group(1)), match.group(2)
    if not suffix:
        return value
    unit = _SHORT_UNITS.get(suffix, suffix)
    return to_minutes(value, unit)

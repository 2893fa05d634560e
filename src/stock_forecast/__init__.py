"""Top-level package for the stock quote forecaster."""

__all__ = [
    "core",
    "indicators",
    "signals",
    "forecast",
    "data",
    "monitoring",
    "scheduler",
]

"""Entry point for manual runs or schedulers."""

from __future__ import annotations

import argparse
import logging
from contextlib import suppress

from stock_forecast.core.config import Config
from stock_forecast.forecast.horizon import parse_horizon
from stock_forecast.scheduler.tasks import ForecastTasks


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stock quote forecaster")
    parser.add_argument("--config", type=str, help="Path to YAML config", default=None)
    parser.add_argument(
        "--symbol",
        dest="symbols",
        action="append",
        help="Ticker to forecast; repeat for several (defaults to the configured universe)",
    )
    parser.add_argument("--horizon", type=parse_horizon, default=None, help="e.g. 30m, 2h, 1d")
    parser.add_argument("--task", type=str, choices=["forecast", "quotes"], default="forecast")
    parser.add_argument("--seed", type=int, default=None, help="Fix the random perturbation")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def cli(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    cfg = Config.load(args.config)
    if args.seed is not None:
        cfg = cfg.model_copy(
            update={"prediction": cfg.prediction.model_copy(update={"seed": args.seed})}
        )
    tasks = ForecastTasks(cfg)
    try:
        if args.task == "quotes":
            tasks.run_quotes(args.symbols)
        else:
            tasks.run_forecast_cycle(args.symbols, args.horizon)
    finally:
        with suppress(Exception):
            tasks.shutdown()


if __name__ == "__main__":
    cli()

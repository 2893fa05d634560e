"""High-level forecast cycle for manual or cron runs."""

from __future__ import annotations

import logging
import random
import time
from typing import Dict, Iterable

from stock_forecast.core.config import Config
from stock_forecast.core.errors import DataFetchError
from stock_forecast.core.models import PredictionResult
from stock_forecast.data.fetcher import MarketDataFetcher
from stock_forecast.forecast.engine import PredictionEngine
from stock_forecast.forecast.path import project_path
from stock_forecast.monitoring.logger import ForecastLogger

logger = logging.getLogger(__name__)


class ForecastTasks:
    """Fetch quote and history per symbol, forecast, and render the result."""

    def __init__(
        self,
        config: Config,
        fetcher: MarketDataFetcher | None = None,
        engine: PredictionEngine | None = None,
        console_logger: ForecastLogger | None = None,
    ) -> None:
        self._config = config
        self._rng = random.Random(config.prediction.seed)
        self._fetcher = fetcher or MarketDataFetcher(config.data)
        self._engine = engine or PredictionEngine(config.prediction, config.indicators, rng=self._rng)
        self._console = console_logger or ForecastLogger()

    def run_quotes(self, symbols: Iterable[str] | None = None) -> None:
        quotes = self._fetcher.fetch_quotes(list(symbols or self._config.data.symbols))
        self._console.log_quotes(quotes)

    def run_forecast_cycle(
        self, symbols: Iterable[str] | None = None, horizon_minutes: float | None = None
    ) -> Dict[str, PredictionResult]:
        horizon = horizon_minutes or self._config.prediction.default_horizon_minutes
        symbols = list(symbols or self._config.data.symbols)
        self._console.info(
            "Forecast cycle", details={"symbols": ", ".join(symbols), "horizon (min)": f"{horizon:g}"}
        )
        results: Dict[str, PredictionResult] = {}
        for symbol in symbols:
            try:
                results[symbol] = self._forecast_symbol(symbol, horizon)
            except DataFetchError as exc:
                logger.warning("Forecast skipped: %s", exc)
                self._console.warning(f"No forecast for {symbol}", details={"reason": str(exc)})
        return results

    def _forecast_symbol(self, symbol: str, horizon: float) -> PredictionResult:
        quote = self._fetcher.fetch_quote(symbol)
        history = self._fetcher.fetch_history(symbol)
        result = self._engine.predict(
            quote.price,
            history,
            volume=quote.volume or 0,
            market_cap=quote.market_cap or 0.0,
            time_horizon_minutes=horizon,
        )
        path = project_path(
            quote.price,
            result.predicted_price,
            horizon,
            abs(quote.change_percent) / 100,
            self._rng,
            start_ms=int(time.time() * 1000),
            precision=self._config.prediction.price_precision,
        )
        self._console.log_prediction(quote, result, horizon, path)
        return result

    def shutdown(self) -> None:
        self._fetcher.close()

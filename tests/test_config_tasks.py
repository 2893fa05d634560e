import io

import httpx
import pytest
from rich.console import Console

from conftest import make_rising_series
from stock_forecast.core.config import Config, DataConfig
from stock_forecast.core.models import Trend
from stock_forecast.data.fetcher import MarketDataFetcher
from stock_forecast.main import parse_args
from stock_forecast.monitoring.logger import ForecastLogger
from stock_forecast.scheduler.tasks import ForecastTasks


def test_default_config():
    cfg = Config.load()
    assert cfg.prediction.min_history_bars == 50
    assert cfg.prediction.max_signals == 5
    assert cfg.indicators.rsi_period == 14
    assert "AAPL" in cfg.data.symbols
    assert "INFY.NS" in cfg.data.symbols


def test_load_yaml_with_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "forecast.yaml"
    path.write_text(
        "data:\n  history_interval: 5m\n  symbols: [AAPL]\nprediction:\n  default_horizon_minutes: 60\n"
    )
    monkeypatch.setenv("FORECAST_SYMBOLS", "MSFT, TCS.NS")
    monkeypatch.setenv("FORECAST_ALPHA_VANTAGE_API_KEY", "key-123")

    cfg = Config.load(path)
    assert cfg.data.history_interval == "5m"
    assert cfg.data.symbols == ["MSFT", "TCS.NS"]
    assert cfg.data.alpha_vantage_api_key == "key-123"
    assert cfg.prediction.default_horizon_minutes == 60


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(tmp_path / "absent.yaml")


def test_parse_args_horizon_and_symbols():
    args = parse_args(["--symbol", "AAPL", "--symbol", "TCS.NS", "--horizon", "2h", "--seed", "3"])
    assert args.symbols == ["AAPL", "TCS.NS"]
    assert args.horizon == 120
    assert args.seed == 3
    assert args.task == "forecast"


def _chart_for(series, symbol):
    return {
        "chart": {
            "result": [
                {
                    "meta": {
                        "symbol": symbol,
                        "currency": "USD",
                        "regularMarketPrice": series.latest().close,
                        "previousClose": series[-2].close,
                        "regularMarketVolume": 100_000,
                        "marketCap": 2e12,
                    },
                    "timestamp": [bar.timestamp // 1000 for bar in series],
                    "indicators": {
                        "quote": [
                            {
                                "open": [bar.open for bar in series],
                                "high": [bar.high for bar in series],
                                "low": [bar.low for bar in series],
                                "close": [bar.close for bar in series],
                                "volume": [bar.volume for bar in series],
                            }
                        ]
                    },
                }
            ]
        }
    }


def test_forecast_cycle_predicts_and_skips_failures():
    series = make_rising_series(60)

    def handler(request):
        if request.url.path.endswith("/AAPL"):
            return httpx.Response(200, json=_chart_for(series, "AAPL"))
        return httpx.Response(404)

    cfg = Config(data=DataConfig(symbols=["AAPL", "BROKEN"], retry_attempts=1, retry_wait_seconds=0))
    fetcher = MarketDataFetcher(cfg.data, client=httpx.Client(transport=httpx.MockTransport(handler)))
    output = io.StringIO()
    tasks = ForecastTasks(cfg, fetcher=fetcher, console_logger=ForecastLogger(Console(file=output, width=120)))
    try:
        results = tasks.run_forecast_cycle(horizon_minutes=30)
    finally:
        tasks.shutdown()

    assert list(results) == ["AAPL"]
    assert results["AAPL"].trend == Trend.BULLISH
    rendered = output.getvalue()
    assert "Forecast AAPL" in rendered
    assert "No forecast for BROKEN" in rendered


def test_run_quotes_renders_table():
    series = make_rising_series(10)

    def handler(request):
        return httpx.Response(200, json=_chart_for(series, request.url.path.rsplit("/", 1)[-1]))

    cfg = Config(data=DataConfig(symbols=["AAPL", "INFY.NS"], retry_attempts=1, retry_wait_seconds=0))
    fetcher = MarketDataFetcher(cfg.data, client=httpx.Client(transport=httpx.MockTransport(handler)))
    output = io.StringIO()
    tasks = ForecastTasks(cfg, fetcher=fetcher, console_logger=ForecastLogger(Console(file=output, width=120)))
    tasks.run_quotes()
    tasks.shutdown()

    rendered = output.getvalue()
    assert "AAPL" in rendered
    assert "INFY.NS" in rendered

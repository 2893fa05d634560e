"""Configuration loading utilities for the forecaster."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from stock_forecast.data.markets import DEFAULT_SYMBOLS

CONFIG_ENV_PREFIX = "FORECAST_"


class DataConfig(BaseModel):
    symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    yahoo_chart_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    alpha_vantage_url: str = "https://www.alphavantage.co/query"
    alpha_vantage_api_key: Optional[str] = None
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    history_interval: str = "1m"
    history_range: str = "1d"
    cache_ttl_seconds: float = 60.0
    cache_max_entries: int = 256
    timeout_seconds: float = 5.0
    retry_attempts: int = 3
    retry_wait_seconds: float = 1.0


class IndicatorConfig(BaseModel):
    sma_short: int = 20
    sma_long: int = 50
    ema_fast: int = 12
    ema_slow: int = 26
    macd_signal: int = 9
    rsi_period: int = 14
    stochastic_period: int = 14
    stochastic_smooth: int = 3
    bollinger_period: int = 20
    atr_period: int = 14
    volatility_window: int = 20
    volume_window: int = 20
    momentum_period: int = 5
    pattern_window: int = 20


class PredictionConfig(BaseModel):
    min_history_bars: int = 50
    max_signals: int = 5
    default_horizon_minutes: float = 30.0
    price_precision: int = 2
    seed: Optional[int] = None


class Config(BaseModel):
    data: DataConfig = Field(default_factory=DataConfig)
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)

    @staticmethod
    def load(path: str | Path | None = None, env_prefix: str = CONFIG_ENV_PREFIX) -> "Config":
        """Load config from YAML file if provided, otherwise use defaults."""
        if path is None:
            config = Config()
        else:
            file_path = Path(path)
            if not file_path.exists():
                raise FileNotFoundError(f"Config file not found: {file_path}")
            data = yaml.safe_load(file_path.read_text()) or {}
            config = Config(**data)
        return _apply_env_overrides(config, env_prefix)


def _apply_env_overrides(config: Config, env_prefix: str) -> Config:
    api_key = os.getenv(f"{env_prefix}ALPHA_VANTAGE_API_KEY")
    symbols = os.getenv(f"{env_prefix}SYMBOLS")

    updates: dict = {}
    if api_key:
        updates["alpha_vantage_api_key"] = api_key
    if symbols:
        updates["symbols"] = [s.strip() for s in symbols.split(",") if s.strip()]
    if not updates:
        return config
    return config.model_copy(update={"data": config.data.model_copy(update=updates)})

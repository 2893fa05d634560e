import logging
import math
import random

import pytest

from conftest import START_MS, MINUTE_MS, ConstantRandom, make_flat_series, make_rising_series
from stock_forecast.core.config import PredictionConfig
from stock_forecast.core.errors import InvalidSeriesError
from stock_forecast.core.models import PriceBar, PriceSeries, Trend
from stock_forecast.forecast.engine import (
    INSUFFICIENT_DATA_SIGNAL,
    PredictionEngine,
    confidence_score,
    predict,
    round_price,
)


@pytest.mark.parametrize("count", [0, 1, 10, 49])
def test_short_history_falls_back_to_random_walk(count):
    result = PredictionEngine(rng=ConstantRandom(0.75)).predict(
        100.0, make_flat_series(count), volume=1000, market_cap=5e9, time_horizon_minutes=30
    )
    assert result.confidence == 0.3
    assert result.signals == (INSUFFICIENT_DATA_SIGNAL,)
    # U(-0.01, 0.01) at 0.75 -> +0.5%
    assert result.predicted_price == pytest.approx(100.5)
    assert result.trend == Trend.BULLISH


def test_fallback_walk_stays_within_one_percent():
    engine = PredictionEngine(rng=random.Random(3))
    for _ in range(50):
        result = engine.predict(200.0, make_flat_series(5))
        assert 198.0 <= result.predicted_price <= 202.0


def test_flat_history_is_neutral(flat_series):
    result = PredictionEngine(rng=random.Random(11)).predict(
        100.0, flat_series, volume=100_000, market_cap=2e9, time_horizon_minutes=30
    )
    assert result.predicted_price == 100.0
    assert result.trend == Trend.NEUTRAL
    assert result.sentiment_score == 0
    assert result.signals == ()
    expected = (0.3 * 0.6 + 0.2 * 1.0 + 0.3 * 1.0 + 0.2 * math.exp(-30 / 120)) * 0.8 + 0.2
    assert result.confidence == round(expected, 2)
    assert result.confidence <= 0.95


def test_rising_history_is_bullish(rising_series, neutral_rng):
    current = rising_series.latest().close
    result = PredictionEngine(rng=neutral_rng).predict(
        current, rising_series, volume=100_000, market_cap=0, time_horizon_minutes=30
    )
    assert result.trend == Trend.BULLISH
    assert result.sentiment_score == pytest.approx(0.3)
    assert result.predicted_price > current
    assert result.signals == (
        "Bullish MA crossover",
        "EMA uptrend (12 above 26)",
        "Overbought (RSI 100.0)",
        "MACD bullish momentum",
        "Stochastic overbought",
    )


def test_steady_one_percent_rise_is_bullish_without_a_move(neutral_rng):
    series = make_rising_series(60, steps=(0.01,))
    current = series.latest().close
    result = PredictionEngine(rng=neutral_rng).predict(
        current, series, volume=100_000, market_cap=0, time_horizon_minutes=30
    )
    assert result.trend == Trend.BULLISH
    assert result.sentiment_score == pytest.approx(0.3)
    # constant returns leave no volatility to scale the move
    assert result.volatility == pytest.approx(0.0, abs=1e-12)
    assert result.predicted_price == round(current, 2)


def test_sub_unit_prices_stay_positive():
    engine = PredictionEngine(rng=ConstantRandom(0.75))
    full = engine.predict(0.004, make_flat_series(60, price=0.004), volume=1000)
    assert full.predicted_price == 0.004
    fallback = engine.predict(0.004, make_flat_series(5, price=0.004), volume=1000)
    assert 0 < fallback.predicted_price == pytest.approx(0.004, rel=0.05)


def test_round_price():
    assert round_price(123.456, 2) == 123.46
    assert round_price(0.001234, 2) == 0.0012
    assert round_price(0.001234, 0) == 0.001


def test_confidence_precision_ignores_price_precision(rising_series, neutral_rng):
    engine = PredictionEngine(config=PredictionConfig(price_precision=6), rng=neutral_rng)
    result = engine.predict(rising_series.latest().close, rising_series, 100_000)
    assert result.confidence == round(result.confidence, 2)


def test_debug_log_reports_informational_indicators(rising_series, neutral_rng, caplog):
    with caplog.at_level(logging.DEBUG, logger="stock_forecast.forecast.engine"):
        PredictionEngine(rng=neutral_rng).predict(rising_series.latest().close, rising_series, 100_000)
    assert "atr=" in caplog.text
    assert "momentum=" in caplog.text


def test_market_cap_damps_the_move(rising_series, neutral_rng):
    current = rising_series.latest().close
    engine = PredictionEngine(config=PredictionConfig(price_precision=6), rng=neutral_rng)
    small = engine.predict(current, rising_series, 100_000, market_cap=5e8)
    large = engine.predict(current, rising_series, 100_000, market_cap=5e9)
    assert (small.predicted_price - current) / (large.predicted_price - current) == pytest.approx(
        1.2 / 0.8, rel=1e-3
    )


def test_longer_horizon_moves_less(rising_series, neutral_rng):
    current = rising_series.latest().close
    engine = PredictionEngine(config=PredictionConfig(price_precision=6), rng=neutral_rng)
    near = engine.predict(current, rising_series, 100_000, time_horizon_minutes=10)
    far = engine.predict(current, rising_series, 100_000, time_horizon_minutes=600)
    assert near.predicted_price - current > far.predicted_price - current > 0
    assert near.confidence > far.confidence


def test_signals_truncated_in_evaluation_order(rising_series, neutral_rng):
    engine = PredictionEngine(config=PredictionConfig(max_signals=2), rng=neutral_rng)
    result = engine.predict(rising_series.latest().close, rising_series, 100_000)
    assert result.signals == ("Bullish MA crossover", "EMA uptrend (12 above 26)")


def test_fixed_random_source_is_deterministic(rising_series):
    current = rising_series.latest().close
    first = PredictionEngine(rng=ConstantRandom(0.9)).predict(current, rising_series, 5000, 1e10, 45)
    second = PredictionEngine(rng=ConstantRandom(0.9)).predict(current, rising_series, 5000, 1e10, 45)
    assert first == second

    seeded = [
        PredictionEngine(config=PredictionConfig(seed=42)).predict(current, rising_series, 5000)
        for _ in range(2)
    ]
    assert seeded[0] == seeded[1]


def test_random_component_is_bounded(rising_series):
    current = rising_series.latest().close
    engine = PredictionEngine(config=PredictionConfig(price_precision=8), rng=ConstantRandom(0.5))
    centre = engine.predict(current, rising_series, 100_000)
    high = PredictionEngine(
        config=PredictionConfig(price_precision=8), rng=ConstantRandom(1.0)
    ).predict(current, rising_series, 100_000)
    # +0.5 * volatility * 0.2
    assert high.predicted_price - centre.predicted_price == pytest.approx(
        current * 0.5 * centre.volatility * 0.2, rel=1e-6
    )


def test_invariants_hold_for_noisy_inputs():
    rng = random.Random(7)
    engine = PredictionEngine(rng=rng)
    for _ in range(25):
        price = 50.0
        bars = []
        for i in range(rng.randint(0, 120)):
            open_ = price
            price = max(0.5, price * (1 + rng.uniform(-0.15, 0.15)))
            high = max(open_, price) * (1 + rng.uniform(0, 0.05))
            low = min(open_, price) * (1 - rng.uniform(0, 0.05))
            bars.append(PriceBar(START_MS + i * MINUTE_MS, open_, high, low, price, rng.randint(0, 10**6)))
        result = engine.predict(
            price,
            PriceSeries(bars),
            volume=rng.choice([0, 10, 10**7]),
            market_cap=rng.choice([0.0, 1e12]),
            time_horizon_minutes=rng.choice([0.5, 30, 10_000]),
        )
        assert 0.1 <= result.confidence <= 0.95
        assert len(result.signals) <= 5
        assert result.predicted_price > 0


def test_confidence_is_clamped():
    assert confidence_score(500, 5.0, 0.0, 1.0) == 0.95
    assert confidence_score(0, 0.0, 5.0, 0.0) == pytest.approx(0.2)
    assert confidence_score(50, 0.5, 0.05, 0.5) == pytest.approx(
        (0.3 * 0.5 + 0.2 * 0.5 + 0.3 * 0.5 + 0.2 * 0.5) * 0.8 + 0.2
    )


def test_maximum_confidence_reaches_cap():
    result = PredictionEngine(rng=ConstantRandom()).predict(
        100.0, make_flat_series(120), volume=100_000, time_horizon_minutes=0.001
    )
    assert result.confidence == 0.95


def test_rejects_invalid_series():
    bars = [
        PriceBar(START_MS + MINUTE_MS, 100, 100, 100, 100, 1),
        PriceBar(START_MS, 100, 100, 100, 100, 1),
    ]
    with pytest.raises(InvalidSeriesError, match="invalid series"):
        PredictionEngine().predict(100.0, bars)

    with pytest.raises(InvalidSeriesError):
        PriceSeries([PriceBar(START_MS, 100, 100, 100, float("nan"), 1)])

    with pytest.raises(InvalidSeriesError):
        PriceSeries([PriceBar(START_MS, 100, 101, 99, 102, 1)])


@pytest.mark.parametrize(
    "kwargs",
    [
        {"current_price": 0.0},
        {"current_price": float("nan")},
        {"time_horizon_minutes": 0},
        {"volume": -1},
        {"market_cap": -5.0},
    ],
)
def test_rejects_invalid_arguments(kwargs):
    params = {
        "current_price": 100.0,
        "history": make_flat_series(60),
        "volume": 0,
        "market_cap": 0.0,
        "time_horizon_minutes": 30.0,
    }
    params.update(kwargs)
    with pytest.raises(ValueError):
        PredictionEngine().predict(**params)


def test_module_level_predict(neutral_rng):
    series = make_rising_series(80)
    result = predict(series.latest().close, series, 100_000, 0.0, 30.0, rng=neutral_rng)
    assert result.trend == Trend.BULLISH
    assert result.change_percent(series.latest().close) > 0

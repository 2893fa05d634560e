import pytest

from stock_forecast.core.models import PriceBar, PriceSeries

START_MS = 1_700_000_000_000
MINUTE_MS = 60_000


class ConstantRandom:
    """Random source that always returns the same draw."""

    def __init__(self, value=0.5):
        self.value = value

    def random(self):
        return self.value


def make_flat_series(count, price=100.0, volume=100_000):
    return PriceSeries(
        PriceBar(START_MS + i * MINUTE_MS, price, price, price, price, volume) for i in range(count)
    )


def make_rising_series(count, start=100.0, volume=100_000, steps=(0.01, 0.02)):
    """Closes rise by ``steps`` in turn; each bar opens at the previous close.

    The default alternates +1% and +2% so returns have non-zero volatility.
    """
    bars = [PriceBar(START_MS, start, start, start, start, volume)]
    close = start
    for i in range(1, count):
        previous = close
        close = previous * (1 + steps[(i - 1) % len(steps)])
        bars.append(PriceBar(START_MS + i * MINUTE_MS, previous, close, previous, close, volume))
    return PriceSeries(bars)


@pytest.fixture
def neutral_rng():
    return ConstantRandom(0.5)


@pytest.fixture
def flat_series():
    return make_flat_series(60)


@pytest.fixture
def rising_series():
    return make_rising_series(60)

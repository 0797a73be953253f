from typing import Sequence

import pytest

from bonding_sim.core.candle import Candle
from bonding_sim.core.config import EngineConfig
from bonding_sim.core.random_source import RandomSource


def _check_series(candles: Sequence[Candle]) -> None:
    assert len(candles) > 0
    for c in candles:
        assert c.open > 0 and c.close > 0 and c.high > 0
        assert c.high >= max(c.open, c.close)
        assert c.low <= min(c.open, c.close)
        assert c.low >= 0
        assert c.volume > 0
    for prev, cur in zip(candles, candles[1:]):
        assert cur.open == prev.close


@pytest.fixture
def rng():
    return RandomSource(1234)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def check_series():
    """OHLC invariants + open/close continuity over a candle sequence."""
    return _check_series

"""
bonding_sim.core.synthesizer - Candle Synthesizer

Turns (open, return) into a full OHLCV record:

    close   = open · (1 + r), clamped by the stage limits
    wicks   = body-relative or cap-relative excursions
    volume  = avg · (1 + |r|·k) · (1 + ε·noise), floored, then folded
              back into the running average

Every candle is invariant-checked before it leaves this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .candle import Candle
from .constraints import ConstraintEnforcer
from .random_source import RandomSource, mean
from .returns import GenerationContext


@dataclass(frozen=True)
class VolumeProfile:
    """
    Volume model for a stage.

    Parameters
    ----------
    start_range : (float, float)
        The running average starts at the mean of this range.
    move_sensitivity : float
        Volume grows by this factor times the absolute return.
    noise : float
        Gaussian noise as a fraction of the base volume.
    floor : float
        Minimum emitted volume.
    decay : float
        EMA weight kept on the previous running average.
    """
    start_range: Tuple[float, float]
    move_sensitivity: float
    noise: float
    floor: float
    decay: float

    def initial_average(self) -> float:
        return mean(self.start_range)

    def sample(
        self,
        ctx: GenerationContext,
        change: float,
        rng: RandomSource,
        scale: float = 1.0,
    ) -> float:
        base = ctx.volume_avg * scale
        volume = base * (1 + abs(change) * self.move_sensitivity) * (1 + rng.gaussian() * self.noise)
        volume = max(self.floor, volume)
        ctx.volume_avg = ctx.volume_avg * self.decay + volume * (1 - self.decay)
        return volume


PRE_BONDING_VOLUME = VolumeProfile((50_000, 150_000), 3.0, 0.30, 10_000, 0.98)
ORGANIC_VOLUME = VolumeProfile((80_000, 120_000), 2.0, 0.25, 15_000, 0.99)
PUMP_DUMP_VOLUME = VolumeProfile((100_000, 150_000), 4.0, 0.40, 20_000, 0.98)


class CandleSynthesizer:
    """
    Builds candles for one run against a single ConstraintEnforcer.

    Parameters
    ----------
    rng : RandomSource
        The chart's seeded stream.
    enforcer : ConstraintEnforcer
        Stage limits for closes and wicks.
    """

    def __init__(self, rng: RandomSource, enforcer: ConstraintEnforcer):
        self.rng = rng
        self.enforcer = enforcer

    def close_for(self, ctx: GenerationContext, change: float) -> float:
        """Candidate close for a return, clamped to the stage limits."""
        return self.enforcer.clamp_close(ctx.cap * (1 + change))

    def body_wicks(
        self,
        open_: float,
        close: float,
        multiplier: float,
        lower_ratio: float = 1.0,
    ) -> Tuple[float, float]:
        """Wicks proportional to the body, one multiplier for both sides."""
        body = abs(close - open_)
        return body * multiplier, body * multiplier * lower_ratio

    def jittered_body_wicks(
        self,
        open_: float,
        close: float,
        multiplier: float,
        lower_ratio: float = 1.0,
    ) -> Tuple[float, float]:
        """Body-relative wicks with an independent uniform draw per side."""
        body = abs(close - open_)
        upper = body * multiplier * self.rng.random()
        lower = body * multiplier * self.rng.random() * lower_ratio
        return upper, lower

    def cap_wicks(self, size: float, lower_ratio: float = 1.0) -> Tuple[float, float]:
        """Wicks up to ``size`` in absolute cap units, independent of the body."""
        return self.rng.random() * size, self.rng.random() * size * lower_ratio

    def emit(
        self,
        ctx: GenerationContext,
        close: float,
        upper_wick: float,
        lower_wick: float,
        volume: float,
    ) -> Candle:
        """Assemble, clamp and check one candle, then advance the context."""
        open_ = ctx.cap
        high = max(open_, close) + upper_wick
        low = min(open_, close) - lower_wick
        high, low = self.enforcer.clamp_wicks(open_, close, high, low)
        candle = Candle(open=open_, high=high, low=low, close=close, volume=volume).check()
        ctx.advance(close)
        return candle

"""
bonding_sim.core.returns - Per-Step Return Models

Mathematical Foundation:
    r_t = σ·ε_t + 0.2·m_t + 0.05·M_t + 0.2·σ·sin(0.05 t) + ρ_t

    m_t   short-term momentum, EMA(0.85 / 0.15) of past returns
    M_t   long-term memory,    EMA(0.97 / 0.03) of past returns
    ρ_t   zone-aware mean reversion toward a linearly rising target

The GenerationContext carries everything that evolves during one run;
it is created per chart and discarded when the run completes.

Dependencies: none beyond the standard library
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, NamedTuple

from .phases import PhaseDescriptor
from .random_source import RandomSource


# ---------------------------------------------------------------------------
# Generation context (mutable, one per run)
# ---------------------------------------------------------------------------
@dataclass
class GenerationContext:
    """
    Mutable state threaded through candle production.

    Fields
    ------
    cap : float
        Current market cap; the next candle opens here.
    volume_avg : float
        Running volume average (EMA, decay set by the stage).
    momentum : float
        Short-term momentum filter.
    memory : float
        Long-term memory filter.
    step : int
        Index of the next candle within the run.
    total : int
        Candles planned for the run.
    phase_step / phase_length : int
        Position inside the active sub-phase.
    params : dict
        Per-run scenario parameters drawn at scenario start.
    """
    cap: float
    volume_avg: float
    momentum: float = 0.0
    memory: float = 0.0
    step: int = 0
    total: int = 0
    phase_step: int = 0
    phase_length: int = 0
    params: Dict[str, float] = field(default_factory=dict)

    @property
    def progress(self) -> float:
        """Linear run progress i/(N-1)."""
        if self.total <= 1:
            return 0.0
        return self.step / (self.total - 1)

    @property
    def phase_progress(self) -> float:
        """Fraction of the active sub-phase already consumed."""
        if self.phase_length <= 0:
            return 0.0
        return self.phase_step / self.phase_length

    def enter_phase(self, length: int) -> None:
        self.phase_step = 0
        self.phase_length = length

    def update_filters(self, change: float) -> None:
        self.momentum = self.momentum * 0.85 + change * 0.15
        self.memory = self.memory * 0.97 + change * 0.03

    def advance(self, close: float) -> None:
        self.cap = close
        self.step += 1
        self.phase_step += 1


class ReturnBreakdown(NamedTuple):
    """Components of one step's return."""
    shock: float
    momentum: float
    memory: float
    cycle: float
    reversion: float

    @property
    def total(self) -> float:
        return self.shock + self.momentum + self.memory + self.cycle + self.reversion


# ---------------------------------------------------------------------------
# Pre-bonding: random walk + momentum + memory + cycles + zone reversion
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ReturnModel:
    """
    Zone-aware pre-bonding return model.

    Parameters
    ----------
    initial_cap : float
        Where the zone target starts.
    bonding_cap : float
        Bonding threshold; the zone peaks at ``zone_fraction`` of it.
    zone_fraction : float
        Zone peak as a fraction of the bonding cap.
    breakout_multiple : float
        Above ``expected * breakout_multiple`` reversion switches off.
    reversion_strength : float
        Scale on the relative deviation from the expected cap.
    """
    initial_cap: float
    bonding_cap: float
    zone_fraction: float = 0.4
    breakout_multiple: float = 1.5
    reversion_strength: float = 0.008
    momentum_weight: float = 0.2
    memory_weight: float = 0.05
    cycle_frequency: float = 0.05
    cycle_weight: float = 0.2

    @property
    def zone_target(self) -> float:
        return self.bonding_cap * self.zone_fraction

    @property
    def natural_breakout_level(self) -> float:
        """Breakout threshold once the zone target is fully reached."""
        return self.zone_target * self.breakout_multiple

    def expected_cap(self, progress: float) -> float:
        """Linear interpolation from the initial cap to the zone target."""
        progress = min(max(progress, 0.0), 1.0)
        return self.initial_cap + (self.zone_target - self.initial_cap) * progress

    def has_broken_out(self, cap: float, progress: float) -> bool:
        # Re-evaluated every step; there is no sticky breakout state.
        return cap > self.expected_cap(progress) * self.breakout_multiple

    def reversion(self, cap: float, progress: float) -> float:
        if self.has_broken_out(cap, progress):
            return 0.0
        expected = self.expected_cap(progress)
        return (expected - cap) / (abs(cap) or 1.0) * self.reversion_strength

    def breakdown(
        self,
        ctx: GenerationContext,
        phase: PhaseDescriptor,
        stage_volatility: float,
        rng: RandomSource,
    ) -> ReturnBreakdown:
        """Draw one step's return components without touching the filters."""
        base_vol = stage_volatility * phase.volatility_multiplier
        return ReturnBreakdown(
            shock=rng.gaussian() * base_vol,
            momentum=ctx.momentum * self.momentum_weight,
            memory=ctx.memory * self.memory_weight,
            cycle=math.sin(ctx.step * self.cycle_frequency) * base_vol * self.cycle_weight,
            reversion=self.reversion(ctx.cap, ctx.progress),
        )

    def step(
        self,
        ctx: GenerationContext,
        phase: PhaseDescriptor,
        stage_volatility: float,
        rng: RandomSource,
    ) -> float:
        """Total return for the current step; updates the momentum filters."""
        change = self.breakdown(ctx, phase, stage_volatility, rng).total
        ctx.update_filters(change)
        return change


# ---------------------------------------------------------------------------
# Post-bonding organic: reversion to the ceiling + drift + slow cycle
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrganicReturnModel:
    """Mean reversion toward the bonding ceiling with a small upward drift."""
    ceiling: float
    reversion_speed: float = 0.05
    drift: float = 0.0005
    cycle_frequency: float = 0.02
    cycle_weight: float = 0.2

    def step(self, ctx: GenerationContext, volatility: float, rng: RandomSource) -> float:
        deviation = (ctx.cap - self.ceiling) / self.ceiling
        pull = -deviation * self.reversion_speed
        diffusion = rng.gaussian() * volatility
        cycle = math.sin(ctx.step * self.cycle_frequency) * volatility * self.cycle_weight
        return pull + diffusion + self.drift + cycle

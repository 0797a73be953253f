"""
bonding_sim.simulation.scenarios - Post-Bonding Scenario Engine

One state machine per post-bonding market scenario. Each scenario walks
an ordered list of named sub-phases; every sub-phase consumes a fixed
share of the candle budget and the last one absorbs the rounding
remainder, so the counts always add up to the requested total.

Scenarios:
    organic         - mean reversion under the ceiling, small drift
    pump_dump       - accumulation → pump → distribution → dump
    instant_rug     - short run-up, one 85-95% candle, dead chart
    slow_bleed      - accelerating decline with relief rallies
    consolidation   - tightening range, then a one-way breakout

Every close is hard-clamped to the bonding ceiling.

Dependencies: loguru
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from loguru import logger

from ..core.candle import Candle
from ..core.config import EngineConfig
from ..core.constraints import ConstraintEnforcer, StageLimits
from ..core.phases import resolve_volatility
from ..core.random_source import RandomSource
from ..core.returns import GenerationContext, OrganicReturnModel
from ..core.synthesizer import (
    CandleSynthesizer,
    ORGANIC_VOLUME,
    PUMP_DUMP_VOLUME,
    VolumeProfile,
)


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ScenarioPhase:
    """A named sub-phase with its candle share, drift and volatility scale."""
    name: str
    share: Optional[float]
    drift: float = 0.0
    volatility_multiplier: float = 1.0


@dataclass(frozen=True)
class ScenarioDescriptor:
    """Ordered sub-phases of one scenario."""
    name: str
    phases: Tuple[ScenarioPhase, ...]

    def allocate(self, num_candles: int) -> List[int]:
        """Split ``num_candles`` by share; the last phase takes the remainder."""
        counts = [int(math.floor(num_candles * (p.share or 0.0))) for p in self.phases[:-1]]
        counts.append(num_candles - sum(counts))
        return counts


PlannedPhase = Tuple[ScenarioPhase, int]


# ---------------------------------------------------------------------------
# Abstract scenario generator
# ---------------------------------------------------------------------------
class ScenarioGenerator(ABC):
    """
    Base class for every post-bonding scenario.

    Subclasses declare a descriptor, a volatility table and a step()
    that produces one candle for the active sub-phase.

    Parameters
    ----------
    config : EngineConfig
        Supplies the bonding ceiling and price floors.
    """

    descriptor: ScenarioDescriptor
    volatility_table: Dict[str, float]
    volume_profile: Optional[VolumeProfile] = None
    wick_allowance: float = 0.005
    max_drop: Optional[float] = None

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def ceiling(self) -> float:
        return self.config.bonding_cap

    def anchor(self, start_cap: float) -> float:
        """
        Reference cap for per-run levels.

        A full chart can hand over a start above the ceiling; the first
        close is clamped there, so levels derived from the start are
        taken from the ceiling instead.
        """
        return min(start_cap, self.ceiling)

    def floor(self, start_cap: float) -> float:
        """Minimum close for a run starting at ``start_cap``."""
        return self.config.min_cap

    def limits(self, start_cap: float) -> StageLimits:
        return StageLimits.post_bonding(
            ceiling=self.ceiling,
            floor=self.floor(start_cap),
            wick_allowance=self.wick_allowance,
            max_drop=self.max_drop,
        )

    def plan(self, num_candles: int, rng: RandomSource) -> List[PlannedPhase]:
        return list(zip(self.descriptor.phases, self.descriptor.allocate(num_candles)))

    def prepare(self, ctx: GenerationContext, rng: RandomSource) -> None:
        """Draw per-run parameters into ``ctx.params``."""

    def generate(
        self,
        start_cap: float,
        num_candles: int,
        volatility: str,
        rng: RandomSource,
    ) -> List[Candle]:
        """
        Produce ``num_candles`` candles opening at ``start_cap``.

        Parameters
        ----------
        start_cap : float
            Open of the first candle (last pre-bonding close, or the ceiling).
        num_candles : int
            Exact number of candles to emit.
        volatility : str
            One of low / medium / high / extreme.
        rng : RandomSource
            The chart's seeded stream.

        Returns
        -------
        List[Candle]
        """
        if start_cap <= 0:
            raise ValueError(f"start_cap must be positive, got {start_cap}")
        if num_candles < 1:
            raise ValueError(f"num_candles must be at least 1, got {num_candles}")
        vol = resolve_volatility(self.volatility_table, volatility)

        volume_avg = self.volume_profile.initial_average() if self.volume_profile else 0.0
        ctx = GenerationContext(cap=start_cap, volume_avg=volume_avg, total=num_candles)
        synth = CandleSynthesizer(rng, ConstraintEnforcer(self.limits(start_cap)))
        self.prepare(ctx, rng)
        plan = self.plan(num_candles, rng)
        logger.debug(
            f"{self.name}: {num_candles} candles from {start_cap:,.0f}, "
            f"plan={[(p.name, n) for p, n in plan]}"
        )

        candles: List[Candle] = []
        for phase, count in plan:
            ctx.enter_phase(count)
            for _ in range(count):
                candles.append(self.step(ctx, phase, synth, vol))
        return candles

    @abstractmethod
    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        """Emit the next candle of the active sub-phase."""
        ...


# ---------------------------------------------------------------------------
# Organic
# ---------------------------------------------------------------------------
class OrganicScenario(ScenarioGenerator):
    """Healthy post-bonding chart hovering just under the ceiling."""

    descriptor = ScenarioDescriptor("organic", (ScenarioPhase("organic", 1.0, 0.0005),))
    volatility_table = {"low": 0.012, "medium": 0.02, "high": 0.03, "extreme": 0.04}
    volume_profile = ORGANIC_VOLUME
    wick_allowance = 0.005
    max_drop = 0.10
    wick_multipliers = (0.2, 0.4, 0.6, 0.8)

    def __init__(self, config: Optional[EngineConfig] = None):
        super().__init__(config)
        self.model = OrganicReturnModel(ceiling=self.ceiling)

    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        rng = synth.rng
        change = self.model.step(ctx, vol, rng)
        close = synth.close_for(ctx, change)
        multiplier = rng.choice(self.wick_multipliers)
        upper, lower = synth.jittered_body_wicks(ctx.cap, close, multiplier, lower_ratio=0.7)
        volume = self.volume_profile.sample(ctx, change, rng)
        return synth.emit(ctx, close, upper, lower, volume)


# ---------------------------------------------------------------------------
# Pump & dump
# ---------------------------------------------------------------------------
class PumpDumpScenario(ScenarioGenerator):
    """Pump into the ceiling, get rejected, distribute, then dump."""

    descriptor = ScenarioDescriptor("pump_dump", (
        ScenarioPhase("accumulation", 0.25, 0.002, 0.8),
        ScenarioPhase("pump", 0.25, 0.008, 2.0),
        ScenarioPhase("distribution", 0.15, -0.001, 1.5),
        ScenarioPhase("dump", 0.35, -0.015, 2.5),
    ))
    volatility_table = {"low": 0.025, "medium": 0.035, "high": 0.045, "extreme": 0.055}
    volume_profile = PUMP_DUMP_VOLUME
    wick_allowance = 0.01
    max_drop = 0.15
    # Pump drift is cut to this fraction within 5% of the ceiling.
    near_ceiling = 0.05
    near_ceiling_damping = 0.3

    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        rng = synth.rng
        drift = phase.drift
        if phase.name == "pump" and (self.ceiling - ctx.cap) / ctx.cap < self.near_ceiling:
            drift *= self.near_ceiling_damping

        change = drift + rng.gaussian() * vol * phase.volatility_multiplier
        raw_close = ctx.cap * (1 + change)
        if raw_close > self.ceiling and phase.name == "pump":
            # Rejected breakout attempt
            raw_close = self.ceiling * rng.uniform(0.995, 1.005)
        close = synth.enforcer.clamp_close(raw_close)

        upper, lower = synth.jittered_body_wicks(
            ctx.cap, close, phase.volatility_multiplier * 0.8, lower_ratio=0.6
        )
        volume = self.volume_profile.sample(ctx, change, rng, scale=phase.volatility_multiplier)
        return synth.emit(ctx, close, upper, lower, volume)


# ---------------------------------------------------------------------------
# Instant rug
# ---------------------------------------------------------------------------
class InstantRugScenario(ScenarioGenerator):
    """Mild run-up, a single 85-95% candle, then a flat dead chart."""

    descriptor = ScenarioDescriptor("instant_rug", (
        ScenarioPhase("run_up", None),
        ScenarioPhase("rug", None),
        ScenarioPhase("dead", None),
    ))
    volatility_table = {"low": 0.01, "medium": 0.02, "high": 0.03, "extreme": 0.04}
    rug_index_range = (10, 29)
    drop_range = (0.85, 0.95)

    def floor(self, start_cap: float) -> float:
        return self.anchor(start_cap) * 0.001

    def plan(self, num_candles: int, rng: RandomSource) -> List[PlannedPhase]:
        run_up, rug, dead = self.descriptor.phases
        rug_index = min(rng.uniform_int(*self.rug_index_range), num_candles - 1)
        return [(run_up, rug_index), (rug, 1), (dead, num_candles - rug_index - 1)]

    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        rng = synth.rng
        if phase.name == "run_up":
            change = rng.uniform(-vol * 0.5, vol * 1.5)
            volume = rng.uniform(100_000, 150_000)
            wick_factor = 0.5
        elif phase.name == "rug":
            change = -rng.uniform(*self.drop_range)
            volume = rng.uniform(500_000, 1_000_000)
            wick_factor = 0.2
        else:
            change = rng.uniform(-0.001, 0.001)
            volume = rng.uniform(1_000, 6_000)
            wick_factor = 0.5

        close = synth.close_for(ctx, change)
        upper, lower = synth.cap_wicks(vol * ctx.cap * wick_factor, lower_ratio=2.0)
        return synth.emit(ctx, close, upper, lower, volume)


# ---------------------------------------------------------------------------
# Slow bleed
# ---------------------------------------------------------------------------
class SlowBleedScenario(ScenarioGenerator):
    """Grinding, accelerating decline toward 10-20% of the start."""

    descriptor = ScenarioDescriptor("slow_bleed", (ScenarioPhase("bleed", 1.0),))
    volatility_table = {"low": 0.01, "medium": 0.015, "high": 0.02, "extreme": 0.025}
    target_range = (0.1, 0.2)
    rally_probability = 0.08

    def floor(self, start_cap: float) -> float:
        return min(self.config.initial_cap * 0.5, self.anchor(start_cap) * 0.05)

    def prepare(self, ctx: GenerationContext, rng: RandomSource) -> None:
        base = self.anchor(ctx.cap)
        target = base * rng.uniform(*self.target_range)
        ctx.params["target_cap"] = target
        ctx.params["base_decline"] = math.log(target / base) / ctx.total

    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        rng = synth.rng
        progress = ctx.step / ctx.total
        decline = ctx.params["base_decline"] * (1 + progress * 2)
        rally = 0.0
        if rng.random() < self.rally_probability:
            rally = abs(rng.gaussian()) * vol * 2
        change = decline + rng.gaussian() * vol + rally

        close = synth.close_for(ctx, change)
        upper, lower = synth.cap_wicks(vol * ctx.cap * 0.5)
        volume = 100_000 - progress * 70_000 + rng.random() * 30_000
        return synth.emit(ctx, close, upper, lower, volume)


# ---------------------------------------------------------------------------
# Consolidation → breakout
# ---------------------------------------------------------------------------
class ConsolidationBreakoutScenario(ScenarioGenerator):
    """±10% range that tightens over time, then a one-directional breakout."""

    descriptor = ScenarioDescriptor("consolidation", (
        ScenarioPhase("range", 0.7),
        ScenarioPhase("breakout", 0.3, 0.008),
    ))
    volatility_table = {"low": 0.008, "medium": 0.012, "high": 0.016, "extreme": 0.02}
    range_half_width = 0.10

    def prepare(self, ctx: GenerationContext, rng: RandomSource) -> None:
        start = self.anchor(ctx.cap)
        range_high = start * (1 + self.range_half_width)
        range_low = start * (1 - self.range_half_width)
        ctx.params["range_center"] = (range_high + range_low) / 2
        ctx.params["breakout_sign"] = 1.0 if rng.random() > 0.5 else -1.0

    def step(
        self,
        ctx: GenerationContext,
        phase: ScenarioPhase,
        synth: CandleSynthesizer,
        vol: float,
    ) -> Candle:
        rng = synth.rng
        if phase.name == "range":
            tightening = 1 - ctx.phase_progress * 0.5
            center = ctx.params["range_center"]
            pull = -(ctx.cap - center) / center * 0.1
            change = (
                pull
                + math.sin(ctx.step * 0.15) * vol * tightening
                + rng.gaussian() * vol * 0.5
            )
            volume = rng.uniform(60_000, 100_000)
        else:
            strength = ctx.params["breakout_sign"] * phase.drift * (1 + ctx.phase_progress)
            change = strength + rng.gaussian() * vol
            volume = rng.uniform(150_000, 250_000)

        close = synth.close_for(ctx, change)
        upper, lower = synth.cap_wicks(vol * ctx.cap * 0.3)
        return synth.emit(ctx, close, upper, lower, volume)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
SCENARIOS: Dict[str, Type[ScenarioGenerator]] = {
    "organic": OrganicScenario,
    "pump_dump": PumpDumpScenario,
    "instant_rug": InstantRugScenario,
    "slow_bleed": SlowBleedScenario,
    "consolidation": ConsolidationBreakoutScenario,
}
SCENARIO_NAMES: Tuple[str, ...] = tuple(SCENARIOS)
SCENARIO_ALIASES: Dict[str, str] = {"consolidation_breakout": "consolidation"}

# Caller-side batching policy; generate(scenario="random") stays uniform.
SCENARIO_WEIGHTS: Dict[str, float] = {
    "instant_rug": 0.20,
    "pump_dump": 0.25,
    "organic": 0.25,
    "slow_bleed": 0.15,
    "consolidation": 0.15,
}


def resolve_scenario_name(name: str) -> str:
    """Canonical scenario name, or ValueError for anything unknown."""
    canonical = SCENARIO_ALIASES.get(name, name)
    if canonical not in SCENARIOS:
        raise ValueError(
            f"unknown scenario {name!r}; expected one of {list(SCENARIO_NAMES) + ['random']}"
        )
    return canonical


def get_scenario(name: str, config: Optional[EngineConfig] = None) -> ScenarioGenerator:
    return SCENARIOS[resolve_scenario_name(name)](config)


def draw_weighted_scenario(rng: RandomSource) -> str:
    """Pick a scenario name using SCENARIO_WEIGHTS."""
    names = list(SCENARIO_WEIGHTS)
    return rng.weighted_choice(names, [SCENARIO_WEIGHTS[n] for n in names])

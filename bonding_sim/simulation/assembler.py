"""
bonding_sim.simulation.assembler - Chart Assembly

Generates the pre-bonding segment, hands its last close to the chosen
post-bonding scenario, concatenates both, stamps 60-second timestamps
ending at "now" and reduces the series to summary metadata.

Randomness:
    price path   - one seeded RandomSource per chart (reproducible)
    chart id     - ``secrets`` (unseeded, never touches the price path)

Dependencies: pandas, loguru
"""

from __future__ import annotations

import json
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from loguru import logger

from ..core.candle import Candle, ChartCandle
from ..core.config import EngineConfig
from ..core.constraints import ConstraintEnforcer, StageLimits
from ..core.phases import (
    PRE_BONDING_VOLATILITY,
    VOLATILITY_LEVELS,
    PhaseSchedule,
    resolve_volatility,
)
from ..core.random_source import RandomSource
from ..core.returns import GenerationContext, ReturnModel
from ..core.synthesizer import CandleSynthesizer, PRE_BONDING_VOLUME
from .diagnostics import summarize_pre_bonding
from .scenarios import SCENARIO_NAMES, get_scenario, resolve_scenario_name

CHART_TYPES = ("full", "pre", "post")
_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_chart_id() -> str:
    """``chart_<unix-ms>_<9 base36 chars>`` from an unseeded source."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"chart_{int(time.time() * 1000)}_{suffix}"


@dataclass(frozen=True)
class Metadata:
    """Pure reduction over a candle sequence's closes."""
    start_cap: float
    final_cap: float
    peak_cap: float
    min_cap: float
    total_candles: int

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> "Metadata":
        if not candles:
            raise ValueError("metadata of an empty chart")
        closes = [c.close for c in candles]
        return cls(
            start_cap=closes[0],
            final_cap=closes[-1],
            peak_cap=max(closes),
            min_cap=min(closes),
            total_candles=len(closes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_cap": self.start_cap,
            "final_cap": self.final_cap,
            "peak_cap": self.peak_cap,
            "min_cap": self.min_cap,
            "total_candles": self.total_candles,
        }


@dataclass
class ChartResult:
    """A finished chart: time-ordered candles plus labels and metadata."""
    id: str
    chart_type: str
    scenario: Optional[str]
    volatility: str
    seed: int
    bonding_cap: float
    data: List[ChartCandle]
    metadata: Metadata
    pre_bonding_candles: int = 0

    @property
    def post_bonding(self) -> List[ChartCandle]:
        return self.data[self.pre_bonding_candles:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chart_type": self.chart_type,
            "scenario": self.scenario,
            "volatility": self.volatility,
            "seed": self.seed,
            "bonding_cap": self.bonding_cap,
            "data": [c.to_dict() for c in self.data],
            "metadata": self.metadata.to_dict(),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_frame(self) -> pd.DataFrame:
        """Candles as a DataFrame indexed by unix-seconds ``time``."""
        df = pd.DataFrame([c.to_dict() for c in self.data])
        df["stage"] = ["pre"] * self.pre_bonding_candles + ["post"] * (
            len(self.data) - self.pre_bonding_candles
        )
        return df.set_index("time")


class ChartAssembler:
    """
    Orchestrates one chart: pre-bonding → post-bonding scenario → metadata.

    Parameters
    ----------
    config : EngineConfig, optional
        Caps, floors and candle-count ranges.
    schedule : PhaseSchedule, optional
        Pre-bonding phase table.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        schedule: Optional[PhaseSchedule] = None,
    ):
        self.config = config or EngineConfig()
        self.schedule = schedule or PhaseSchedule()
        self.return_model = ReturnModel(
            initial_cap=self.config.initial_cap,
            bonding_cap=self.config.bonding_cap,
        )

    def pre_bonding(self, volatility: str, rng: RandomSource) -> List[Candle]:
        """Price-discovery segment from the initial cap, effectively unbounded above."""
        cfg = self.config
        stage_vol = resolve_volatility(PRE_BONDING_VOLATILITY, volatility)
        num_candles = rng.uniform_int(*cfg.pre_candles)

        ctx = GenerationContext(
            cap=cfg.initial_cap,
            volume_avg=PRE_BONDING_VOLUME.initial_average(),
            total=num_candles,
        )
        limits = StageLimits.pre_bonding(ceiling=cfg.pre_bonding_ceiling, floor=cfg.min_cap)
        synth = CandleSynthesizer(rng, ConstraintEnforcer(limits))

        candles: List[Candle] = []
        for _ in range(num_candles):
            phase = self.schedule.lookup(ctx.progress)
            change = self.return_model.step(ctx, phase, stage_vol, rng)
            close = synth.close_for(ctx, change)
            upper, lower = synth.body_wicks(
                ctx.cap, close, rng.uniform(0.5, 1.3), lower_ratio=0.85
            )
            volume = PRE_BONDING_VOLUME.sample(ctx, change, rng)
            candles.append(synth.emit(ctx, close, upper, lower, volume))

        logger.opt(lazy=True).debug(
            "Pre-bonding: {} → {} (bonding at {}) {}",
            lambda: f"{cfg.initial_cap:,.0f}",
            lambda: f"{candles[-1].close:,.2f}",
            lambda: f"{cfg.bonding_cap:,.0f}",
            lambda: summarize_pre_bonding(
                candles, self.schedule, self.return_model.natural_breakout_level
            ).summary(),
        )
        return candles

    def post_bonding(
        self,
        start_cap: float,
        scenario: str,
        volatility: str,
        rng: RandomSource,
    ) -> List[Candle]:
        """Scenario segment under the bonding ceiling."""
        generator = get_scenario(scenario, self.config)
        num_candles = rng.uniform_int(*self.config.post_candles)
        return generator.generate(start_cap, num_candles, volatility, rng)

    def generate(
        self,
        chart_type: str = "full",
        scenario: str = "random",
        volatility: str = "medium",
        seed: Optional[int] = None,
        now: Optional[int] = None,
    ) -> ChartResult:
        """
        Generate one complete chart.

        Parameters
        ----------
        chart_type : str
            ``full`` (pre + post), ``pre`` or ``post``.
        scenario : str
            A scenario name or ``random`` (uniform over the five).
        volatility : str
            low / medium / high / extreme.
        seed : int, optional
            Price-path seed; drawn from OS entropy and recorded when None.
        now : int, optional
            Unix-seconds anchor for the last candle's timestamp.

        Returns
        -------
        ChartResult
        """
        if chart_type not in CHART_TYPES:
            raise ValueError(f"unknown chart type {chart_type!r}; expected one of {CHART_TYPES}")
        if volatility not in VOLATILITY_LEVELS:
            raise ValueError(
                f"unknown volatility level {volatility!r}; expected one of {VOLATILITY_LEVELS}"
            )
        if scenario != "random":
            scenario = resolve_scenario_name(scenario)

        if seed is None:
            seed = secrets.randbits(63)
        chart_id = new_chart_id()
        with logger.contextualize(chart=chart_id, seed=seed):
            return self._assemble(chart_id, chart_type, scenario, volatility, seed, now)

    def _assemble(
        self,
        chart_id: str,
        chart_type: str,
        scenario: str,
        volatility: str,
        seed: int,
        now: Optional[int],
    ) -> ChartResult:
        rng = RandomSource(seed)

        resolved: Optional[str] = None
        if chart_type in ("full", "post"):
            resolved = rng.choice(SCENARIO_NAMES) if scenario == "random" else scenario

        candles: List[Candle] = []
        if chart_type in ("full", "pre"):
            candles.extend(self.pre_bonding(volatility, rng))
        pre_count = len(candles)

        if resolved is not None:
            start_cap = candles[-1].close if candles else self.config.bonding_cap
            candles.extend(self.post_bonding(start_cap, resolved, volatility, rng))

        if now is None:
            now = int(time.time())
        step = self.config.candle_seconds
        total = len(candles)
        data = [c.stamp(now - (total - i) * step) for i, c in enumerate(candles)]

        result = ChartResult(
            id=chart_id,
            chart_type=chart_type,
            scenario=resolved,
            volatility=volatility,
            seed=seed,
            bonding_cap=self.config.bonding_cap,
            data=data,
            metadata=Metadata.from_candles(candles),
            pre_bonding_candles=pre_count,
        )
        logger.debug(
            f"Generated {result.id}: type={chart_type} scenario={resolved} "
            f"candles={total} (pre={pre_count})"
        )
        return result


def generate(
    chart_type: str = "full",
    scenario: str = "random",
    volatility: str = "medium",
    seed: Optional[int] = None,
    now: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> ChartResult:
    """Module-level shortcut for ``ChartAssembler(config).generate(...)``."""
    return ChartAssembler(config).generate(
        chart_type=chart_type,
        scenario=scenario,
        volatility=volatility,
        seed=seed,
        now=now,
    )

"""
bonding_sim.core.phases - Pre-Bonding Phase Schedule

A pre-bonding run is split into six named regimes by generation progress.
Each regime scales the stage volatility; the drift bias is carried as a
label of the regime's intended direction.

Also holds the per-stage volatility tables keyed by volatility level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

VOLATILITY_LEVELS: Tuple[str, ...] = ("low", "medium", "high", "extreme")

# Stage volatility by level; post-bonding scenarios are much calmer.
PRE_BONDING_VOLATILITY: Dict[str, float] = {
    "low": 0.08, "medium": 0.15, "high": 0.25, "extreme": 0.35,
}


def resolve_volatility(table: Dict[str, float], level: str) -> float:
    """Look up a volatility level, failing fast on unknown names."""
    try:
        return table[level]
    except KeyError:
        raise ValueError(
            f"unknown volatility level {level!r}; expected one of {list(table)}"
        ) from None


@dataclass(frozen=True)
class PhaseDescriptor:
    """A named regime covering [start_fraction, end_fraction) of a run."""
    name: str
    start_fraction: float
    end_fraction: float
    drift_bias: float
    volatility_multiplier: float

    def contains(self, progress: float) -> bool:
        return self.start_fraction <= progress < self.end_fraction


PRE_BONDING_PHASES: Tuple[PhaseDescriptor, ...] = (
    PhaseDescriptor("early_accumulation", 0.00, 0.15, 0.002, 0.6),
    PhaseDescriptor("consolidation", 0.15, 0.35, 0.0, 0.4),
    PhaseDescriptor("pullback", 0.35, 0.45, -0.003, 1.3),
    PhaseDescriptor("recovery", 0.45, 0.65, 0.001, 1.1),
    PhaseDescriptor("breakout", 0.65, 0.80, 0.003, 1.4),
    PhaseDescriptor("final_push", 0.80, 1.00, 0.008, 1.5),
)


class PhaseSchedule:
    """
    Ordered phase table looked up by linear progress.

    Parameters
    ----------
    phases : sequence of PhaseDescriptor
        Contiguous, ordered regimes. The last one doubles as the fallback
        for progress values no half-open interval contains (progress 1.0).
    """

    def __init__(self, phases: Sequence[PhaseDescriptor] = PRE_BONDING_PHASES):
        if not phases:
            raise ValueError("phase schedule needs at least one phase")
        self.phases: List[PhaseDescriptor] = list(phases)

    @staticmethod
    def progress(index: int, total: int) -> float:
        """Linear progress i/(N-1); a single-candle run sits at 0."""
        if total <= 1:
            return 0.0
        return index / (total - 1)

    def lookup(self, progress: float) -> PhaseDescriptor:
        for phase in self.phases:
            if phase.contains(progress):
                return phase
        return self.phases[-1]

    def at(self, index: int, total: int) -> PhaseDescriptor:
        return self.lookup(self.progress(index, total))

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.phases]

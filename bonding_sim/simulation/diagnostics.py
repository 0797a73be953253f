"""
bonding_sim.simulation.diagnostics - Pre-Bonding Run Summary

Phase occupancy, natural-breakout counts and move statistics for a
pre-bonding segment. Read-only; used for debug logging and by callers
that want to sanity-check a batch.

Dependencies: numpy
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from ..core.candle import Candle
from ..core.phases import PhaseSchedule


@dataclass
class PreBondingSummary:
    """Aggregate view of one pre-bonding segment."""
    phase_counts: Dict[str, int]
    breakout_candles: int
    avg_change_pct: float
    max_swing_pct: float
    min_close: float
    max_close: float

    def summary(self) -> Dict:
        return {
            "phases": dict(self.phase_counts),
            "breakouts": self.breakout_candles,
            "avg_change": f"{self.avg_change_pct:.2f}%",
            "max_swing": f"{self.max_swing_pct:.1f}%",
            "range": f"{self.min_close:,.0f} - {self.max_close:,.0f}",
        }


def summarize_pre_bonding(
    candles: Sequence[Candle],
    schedule: PhaseSchedule,
    breakout_level: float,
) -> PreBondingSummary:
    """
    Summarize a pre-bonding segment.

    Parameters
    ----------
    candles : sequence of Candle
        The segment, in time order.
    schedule : PhaseSchedule
        Schedule used to generate it.
    breakout_level : float
        Closes above this count as natural breakouts.
    """
    if not candles:
        raise ValueError("cannot summarize an empty segment")

    total = len(candles)
    counts: Dict[str, int] = {name: 0 for name in schedule.names}
    for i in range(total):
        counts[schedule.at(i, total).name] += 1

    closes = np.array([c.close for c in candles], dtype=float)
    if total > 1:
        changes = np.diff(closes) / closes[:-1] * 100.0
        avg_change = float(np.mean(changes))
        max_swing = float(np.max(np.abs(changes)))
    else:
        avg_change = max_swing = 0.0

    return PreBondingSummary(
        phase_counts=counts,
        breakout_candles=int(np.sum(closes > breakout_level)),
        avg_change_pct=avg_change,
        max_swing_pct=max_swing,
        min_close=float(closes.min()),
        max_close=float(closes.max()),
    )

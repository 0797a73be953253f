"""
bonding_sim.core.constraints - Ceiling / Floor / Wick Clamps

Every quantity that could leave its valid range is clamped inline.
Stage limits differ: pre-bonding closes are effectively unbounded above,
post-bonding closes are hard-capped at the bonding ceiling with a small
wick allowance for rejected breakout attempts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class StageLimits:
    """
    Price limits for one stage or scenario.

    Parameters
    ----------
    ceiling : float
        Maximum close.
    floor : float
        Minimum close.
    wick_ceiling : float
        Maximum high; never below ``ceiling``.
    max_drop : float, optional
        Low may sit at most this fraction below the open.
    swing_fraction : float, optional
        Intraday swing clamp: high/low stay within
        ``max(swing_body_multiple * body, swing_fraction * open)`` of the open.
    """
    ceiling: float
    floor: float
    wick_ceiling: float
    max_drop: Optional[float] = None
    swing_fraction: Optional[float] = None
    swing_body_multiple: float = 1.5

    @classmethod
    def pre_bonding(cls, ceiling: float, floor: float) -> "StageLimits":
        return cls(ceiling=ceiling, floor=floor, wick_ceiling=ceiling, swing_fraction=0.05)

    @classmethod
    def post_bonding(
        cls,
        ceiling: float,
        floor: float,
        wick_allowance: float = 0.005,
        max_drop: Optional[float] = None,
    ) -> "StageLimits":
        if not 0.0 <= wick_allowance <= 0.01:
            raise ValueError(f"wick allowance {wick_allowance} outside [0, 1%]")
        return cls(
            ceiling=ceiling,
            floor=floor,
            wick_ceiling=ceiling * (1.0 + wick_allowance),
            max_drop=max_drop,
        )


class ConstraintEnforcer:
    """Applies StageLimits plus the universal OHLC invariants."""

    def __init__(self, limits: StageLimits):
        self.limits = limits

    def clamp_close(self, close: float) -> float:
        lim = self.limits
        return min(lim.ceiling, max(lim.floor, close))

    def clamp_wicks(
        self,
        open_: float,
        close: float,
        high: float,
        low: float,
    ) -> Tuple[float, float]:
        """Bound high/low by stage limits, then force them around the body."""
        lim = self.limits
        if lim.swing_fraction is not None:
            body = abs(close - open_)
            max_swing = max(body * lim.swing_body_multiple, open_ * lim.swing_fraction)
            high = min(high, open_ + max_swing)
            low = max(low, open_ - max_swing)
        high = min(high, lim.wick_ceiling)
        if lim.max_drop is not None:
            low = max(low, open_ * (1.0 - lim.max_drop))

        high = max(high, open_, close)
        low = min(low, open_, close)
        low = max(low, 0.0)
        return high, low

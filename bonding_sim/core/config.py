"""
bonding_sim.core.config - Engine Constants

Bonding-curve constants and candle-count ranges shared by every stage
of a generation run. Built from the ``engine:`` section of config.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine parameters.

    Parameters
    ----------
    initial_cap : float
        Market cap at the first pre-bonding open.
    bonding_cap : float
        Bonding threshold; hard ceiling on every post-bonding close.
    min_cap : float
        Absolute floor applied to closes that would otherwise collapse.
    pre_candles : (int, int)
        Inclusive range for the pre-bonding candle count.
    post_candles : (int, int)
        Inclusive range for the post-bonding candle count.
    candle_seconds : int
        Spacing between candle timestamps.
    pre_ceiling_multiple : float
        Pre-bonding close ceiling as a multiple of ``bonding_cap``.
    """

    initial_cap: float = 5_000.0
    bonding_cap: float = 100_000.0
    min_cap: float = 50.0
    pre_candles: Tuple[int, int] = (150, 400)
    post_candles: Tuple[int, int] = (500, 1500)
    candle_seconds: int = 60
    pre_ceiling_multiple: float = 1000.0

    def __post_init__(self) -> None:
        if self.initial_cap <= 0 or self.bonding_cap <= 0 or self.min_cap <= 0:
            raise ValueError("initial_cap, bonding_cap and min_cap must be positive")
        if self.bonding_cap < self.initial_cap:
            raise ValueError(
                f"bonding_cap ({self.bonding_cap}) below initial_cap ({self.initial_cap})"
            )
        for name in ("pre_candles", "post_candles"):
            low, high = getattr(self, name)
            if low < 2 or high < low:
                raise ValueError(f"invalid {name} range: {(low, high)}")
        if self.candle_seconds <= 0:
            raise ValueError("candle_seconds must be positive")

    @property
    def pre_bonding_ceiling(self) -> float:
        """Effectively unreachable pre-bonding close ceiling."""
        return self.bonding_cap * self.pre_ceiling_multiple

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "EngineConfig":
        """Build from a config mapping; unknown keys are ignored."""
        if not raw:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {k: v for k, v in raw.items() if k in known}
        for name in ("pre_candles", "post_candles"):
            if name in kwargs:
                kwargs[name] = tuple(int(v) for v in kwargs[name])
        return cls(**kwargs)

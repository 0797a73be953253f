"""
bonding_sim.core.candle - OHLCV Records

Candles are frozen once emitted; the engine never revisits a past candle.
Invariant violations are programming defects, not runtime conditions, so
they surface as CandleInvariantError rather than being clamped away.

Dependencies: pydantic
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class CandleInvariantError(AssertionError):
    """A synthesized candle broke one of the universal OHLC invariants."""


class Candle(BaseModel):
    """One synthesized candle, in market-cap units."""

    open: float = Field(..., description="Open (previous close)")
    high: float = Field(..., description="Highest excursion")
    low: float = Field(..., description="Lowest excursion")
    close: float = Field(..., description="Close")
    volume: float = Field(..., description="Traded volume")

    model_config = ConfigDict(frozen=True)

    @property
    def change(self) -> float:
        """Fractional close-over-open move."""
        return self.close / self.open - 1.0

    @property
    def is_green(self) -> bool:
        return self.close >= self.open

    def check(self) -> "Candle":
        """Raise CandleInvariantError unless every OHLC invariant holds."""
        problems = []
        if not (self.open > 0 and self.close > 0 and self.high > 0):
            problems.append("non-positive price")
        if self.high < max(self.open, self.close):
            problems.append("high below body")
        if self.low > min(self.open, self.close):
            problems.append("low above body")
        if self.low < 0:
            problems.append("negative low")
        if not self.volume > 0:
            problems.append("non-positive volume")
        if problems:
            raise CandleInvariantError(f"{', '.join(problems)}: {self!r}")
        return self

    def stamp(self, time: int) -> "ChartCandle":
        """Attach a unix-seconds timestamp for display."""
        return ChartCandle(time=time, **self.model_dump())


class ChartCandle(Candle):
    """Candle with a display timestamp (lightweight-charts layout)."""

    time: int = Field(..., description="Unix seconds")

    def to_dict(self) -> Dict[str, float]:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

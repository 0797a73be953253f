"""
bonding_sim.core - THE ENGINE

Pure stochastic building blocks with zero scenario logic.
Defines how a single candle comes into existence.

Modules:
    config          - EngineConfig (caps, candle-count ranges)
    random_source   - Seeded uniform / Box-Muller sampling
    candle          - Immutable OHLCV records + invariant check
    phases          - Pre-bonding phase schedule, volatility tables
    returns         - Per-step return models and the generation context
    constraints     - Ceiling / floor / wick clamps
    synthesizer     - (open, close) → full OHLCV candle
"""

from .config import EngineConfig
from .random_source import RandomSource, mean
from .candle import Candle, ChartCandle, CandleInvariantError
from .phases import PhaseDescriptor, PhaseSchedule, PRE_BONDING_PHASES
from .returns import GenerationContext, ReturnModel, OrganicReturnModel
from .constraints import ConstraintEnforcer, StageLimits
from .synthesizer import CandleSynthesizer, VolumeProfile

__all__ = [
    "EngineConfig",
    "RandomSource",
    "mean",
    "Candle",
    "ChartCandle",
    "CandleInvariantError",
    "PhaseDescriptor",
    "PhaseSchedule",
    "PRE_BONDING_PHASES",
    "GenerationContext",
    "ReturnModel",
    "OrganicReturnModel",
    "ConstraintEnforcer",
    "StageLimits",
    "CandleSynthesizer",
    "VolumeProfile",
]

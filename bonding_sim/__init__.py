"""
╔═══════════════════════════════════════════════════════════════╗
║                    BONDING SIM                                ║
║       Synthetic Candle Engine for Bonding-Curve Launches       ║
║                                                               ║
║  Pre-bonding discovery. Post-bonding ceiling.                  ║
║  Organic. Pump. Rug. Bleed. Breakout.                         ║
║                                                               ║
║  Random Source → Return Model → Constraints → Candles          ║
╚═══════════════════════════════════════════════════════════════╝
"""

__version__ = "0.1.0"
__author__ = "Bonding Sim Research"

from .core.config import EngineConfig
from .core.candle import Candle, ChartCandle, CandleInvariantError
from .core.random_source import RandomSource
from .simulation.assembler import ChartAssembler, ChartResult, Metadata, generate

__all__ = [
    "EngineConfig",
    "Candle",
    "ChartCandle",
    "CandleInvariantError",
    "RandomSource",
    "ChartAssembler",
    "ChartResult",
    "Metadata",
    "generate",
]

"""
bonding_sim.simulation - THE LABORATORY

Post-bonding scenario state machines and whole-chart assembly on top of
the core engine.
"""

from .assembler import ChartAssembler, ChartResult, Metadata, generate
from .diagnostics import PreBondingSummary, summarize_pre_bonding
from .scenarios import (
    SCENARIO_NAMES,
    SCENARIO_WEIGHTS,
    ScenarioGenerator,
    draw_weighted_scenario,
    get_scenario,
)

__all__ = [
    "ChartAssembler",
    "ChartResult",
    "Metadata",
    "generate",
    "PreBondingSummary",
    "summarize_pre_bonding",
    "SCENARIO_NAMES",
    "SCENARIO_WEIGHTS",
    "ScenarioGenerator",
    "draw_weighted_scenario",
    "get_scenario",
]

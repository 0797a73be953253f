"""
bonding_sim.main - The Launchpad

Command-line entry point: generate one chart and emit it.

Formats:
    json     - lightweight-charts style payload (id, scenario, data, metadata)
    csv      - one row per candle, indexed by unix-seconds time
    summary  - log the labels and metadata only

Usage:
    python -m bonding_sim.main --chart-type post --scenario instant_rug --seed 7
    python -m bonding_sim.main --volatility extreme --format csv --output chart.csv
    python -m bonding_sim.main --weighted --format summary
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .core.config import EngineConfig
from .core.phases import VOLATILITY_LEVELS
from .core.random_source import RandomSource
from .simulation.assembler import CHART_TYPES, ChartAssembler, ChartResult
from .simulation.scenarios import SCENARIO_NAMES, draw_weighted_scenario
from .utils.formatting import format_cap
from .utils.logger import get_logger


def load_config(path: str = "config.yaml") -> dict:
    """Load configuration from YAML file, expanding ${ENV_VAR} references."""
    config_path = Path(__file__).parent / path
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")
    with open(config_path) as f:
        raw = f.read()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def render(result: ChartResult, fmt: str) -> str:
    if fmt == "json":
        return result.to_json()
    if fmt == "csv":
        return result.to_frame().to_csv()
    raise ValueError(f"unknown output format {fmt!r}")


def log_summary(result: ChartResult, logger) -> None:
    meta = result.metadata
    logger = logger.bind(chart=result.id, seed=result.seed)
    logger.info(f"Chart {result.id}")
    logger.info(f"  type: {result.chart_type}  scenario: {result.scenario}  "
                f"volatility: {result.volatility}  seed: {result.seed}")
    logger.info(f"  start: {format_cap(meta.start_cap)}  peak: {format_cap(meta.peak_cap)}  "
                f"min: {format_cap(meta.min_cap)}  final: {format_cap(meta.final_cap)}")
    logger.info(f"  candles: {meta.total_candles} (pre-bonding {result.pre_bonding_candles})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bonding Sim - synthetic bonding-curve candle generator"
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--chart-type", choices=CHART_TYPES, default=None)
    parser.add_argument(
        "--scenario",
        choices=list(SCENARIO_NAMES) + ["consolidation_breakout", "random"],
        default=None,
    )
    parser.add_argument("--volatility", choices=VOLATILITY_LEVELS, default=None)
    parser.add_argument("--seed", type=int, default=None, help="Price-path seed")
    parser.add_argument(
        "--weighted",
        action="store_true",
        help="Draw a random scenario from the weighted batching table",
    )
    parser.add_argument("--format", choices=["json", "csv", "summary"], default="json")
    parser.add_argument("--output", default=None, help="Write to this file instead of stdout")
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    log_cfg = config.get("logging") or {}
    logger = get_logger(
        "bonding_sim",
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        json_format=bool(log_cfg.get("json", False)),
    )

    gen_cfg = config.get("generation") or {}
    chart_type = args.chart_type or gen_cfg.get("chart_type", "full")
    scenario = args.scenario or gen_cfg.get("scenario", "random")
    volatility = args.volatility or gen_cfg.get("volatility", "medium")
    seed = args.seed if args.seed is not None else gen_cfg.get("seed")

    try:
        engine = EngineConfig.from_dict(config.get("engine"))
        if scenario == "random" and args.weighted:
            scenario = draw_weighted_scenario(RandomSource(seed))
            logger.info(f"Weighted draw picked scenario: {scenario}")
        result = ChartAssembler(engine).generate(
            chart_type=chart_type,
            scenario=scenario,
            volatility=volatility,
            seed=seed,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if args.format == "summary":
        log_summary(result, logger)
        return 0

    payload = render(result, args.format)
    if args.output:
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        Path(args.output).write_text(payload)
        logger.info(f"Saved {result.metadata.total_candles} candles to {args.output}")
    else:
        sys.stdout.write(payload)
        if not payload.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

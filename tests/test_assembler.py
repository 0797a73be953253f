import json
import re

import pandas as pd
import pytest

from bonding_sim import generate
from bonding_sim.core.config import EngineConfig
from bonding_sim.core.random_source import RandomSource
from bonding_sim.simulation.assembler import ChartAssembler, Metadata, new_chart_id
from bonding_sim.simulation.diagnostics import summarize_pre_bonding
from bonding_sim.simulation.scenarios import SCENARIO_NAMES

NOW = 1_700_000_000
CEILING = 100_000.0


@pytest.fixture
def assembler():
    return ChartAssembler()


def test_full_chart_is_continuous_and_valid(assembler, check_series):
    for seed in range(5):
        result = assembler.generate("full", "random", "medium", seed=seed, now=NOW)
        check_series(result.data)
        assert result.data[0].open == 5_000.0
        assert 150 <= result.pre_bonding_candles <= 400
        assert 500 <= len(result.post_bonding) <= 1500
        assert result.scenario in SCENARIO_NAMES


def test_full_chart_post_segment_under_ceiling(assembler):
    for seed in range(10):
        result = assembler.generate("full", "random", "high", seed=seed, now=NOW)
        post = result.post_bonding
        pre_last = result.data[result.pre_bonding_candles - 1]
        assert post[0].open == pre_last.close
        assert all(c.close <= CEILING for c in post)
        # The hand-off candle opens wherever pre-bonding ended.
        assert post[0].high <= max(CEILING * 1.01, post[0].open)
        assert all(c.high <= CEILING * 1.01 for c in post[1:])


def test_post_only_starts_at_ceiling(assembler, check_series):
    result = assembler.generate("post", "pump_dump", "extreme", seed=3, now=NOW)
    check_series(result.data)
    assert result.pre_bonding_candles == 0
    assert result.data[0].open == CEILING
    assert all(c.close <= CEILING for c in result.data)
    assert all(c.high <= CEILING * 1.01 for c in result.data)


def test_pre_only_has_no_scenario(assembler):
    result = assembler.generate("pre", "random", "low", seed=9, now=NOW)
    assert result.scenario is None
    assert 150 <= len(result.data) <= 400
    assert result.pre_bonding_candles == len(result.data)


def test_organic_post_example(assembler):
    result = assembler.generate("post", "organic", "low", seed=2024, now=NOW)
    assert 500 <= result.metadata.total_candles <= 1500
    assert all(c.close <= CEILING for c in result.data)
    assert result.metadata.peak_cap <= CEILING


def test_pre_bonding_close_ceiling_is_far_away(assembler):
    rng = RandomSource(0)
    candles = assembler.pre_bonding("extreme", rng)
    assert all(c.close <= CEILING * 1000 for c in candles)


def test_pre_bonding_can_run_past_bonding():
    assembler = ChartAssembler()
    peak = 0.0
    for seed in range(200):
        candles = assembler.pre_bonding("extreme", RandomSource(seed))
        peak = max(peak, max(c.close for c in candles))
        if peak >= 2 * CEILING:
            break
    assert peak >= 2 * CEILING


def test_same_seed_is_byte_identical(assembler):
    a = assembler.generate("full", "random", "high", seed=123, now=NOW)
    b = assembler.generate("full", "random", "high", seed=123, now=NOW)
    assert a.scenario == b.scenario
    assert json.dumps([c.to_dict() for c in a.data]) == json.dumps([c.to_dict() for c in b.data])
    assert a.id != b.id


def test_different_seeds_differ(assembler):
    a = assembler.generate("post", "organic", "medium", seed=1, now=NOW)
    b = assembler.generate("post", "organic", "medium", seed=2, now=NOW)
    assert [c.close for c in a.data] != [c.close for c in b.data]


def test_seed_is_recorded_when_not_given(assembler):
    result = assembler.generate("pre", volatility="low", now=NOW)
    replay = assembler.generate("pre", volatility="low", seed=result.seed, now=NOW)
    assert [c.close for c in replay.data] == [c.close for c in result.data]


def test_timestamps_are_minute_spaced_before_now(assembler):
    result = assembler.generate("post", "slow_bleed", "medium", seed=5, now=NOW)
    times = [c.time for c in result.data]
    assert times[-1] == NOW - 60
    assert all(b - a == 60 for a, b in zip(times, times[1:]))


def test_metadata_is_reduction_over_closes(assembler):
    result = assembler.generate("full", "consolidation", "medium", seed=17, now=NOW)
    closes = [c.close for c in result.data]
    assert result.metadata == Metadata(
        start_cap=closes[0],
        final_cap=closes[-1],
        peak_cap=max(closes),
        min_cap=min(closes),
        total_candles=len(closes),
    )
    with pytest.raises(ValueError):
        Metadata.from_candles([])


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(chart_type="both"),
        dict(scenario="moon"),
        dict(volatility="wild"),
    ],
)
def test_invalid_options_fail_fast(assembler, kwargs):
    with pytest.raises(ValueError):
        assembler.generate(**kwargs)


def test_random_scenario_follows_seed(assembler):
    picks = {assembler.generate("post", seed=s, now=NOW).scenario for s in range(60)}
    assert picks == set(SCENARIO_NAMES)
    assert assembler.generate("post", seed=8, now=NOW).scenario == \
        assembler.generate("post", seed=8, now=NOW).scenario


def test_chart_id_format():
    a, b = new_chart_id(), new_chart_id()
    assert re.fullmatch(r"chart_\d+_[0-9a-z]{9}", a)
    assert a != b


def test_exports(assembler):
    result = assembler.generate("full", "instant_rug", "medium", seed=31, now=NOW)
    payload = json.loads(result.to_json())
    assert payload["scenario"] == "instant_rug"
    assert payload["bonding_cap"] == CEILING
    assert len(payload["data"]) == payload["metadata"]["total_candles"]
    assert set(payload["data"][0]) == {"time", "open", "high", "low", "close", "volume"}

    df = result.to_frame()
    assert isinstance(df, pd.DataFrame)
    assert df.index.name == "time"
    assert list(df.columns) == ["open", "high", "low", "close", "volume", "stage"]
    assert (df["stage"] == "pre").sum() == result.pre_bonding_candles


def test_module_level_generate_with_custom_config():
    config = EngineConfig(initial_cap=1_000.0, bonding_cap=50_000.0, post_candles=(20, 40))
    result = generate("full", "organic", "medium", seed=4, now=NOW, config=config)
    assert result.data[0].open == 1_000.0
    assert result.bonding_cap == 50_000.0
    assert 20 <= len(result.post_bonding) <= 40
    assert all(c.close <= 50_000.0 for c in result.post_bonding)


def test_pre_bonding_summary(assembler):
    candles = assembler.pre_bonding("medium", RandomSource(6))
    summary = summarize_pre_bonding(
        candles, assembler.schedule, assembler.return_model.natural_breakout_level
    )
    assert sum(summary.phase_counts.values()) == len(candles)
    assert summary.breakout_candles == sum(1 for c in candles if c.close > 60_000.0)
    assert summary.max_swing_pct >= abs(summary.avg_change_pct)
    assert summary.min_close == min(c.close for c in candles)
    assert set(summary.summary()) == {"phases", "breakouts", "avg_change", "max_swing", "range"}

import pytest
from pydantic import ValidationError

from bonding_sim.core.candle import Candle, CandleInvariantError
from bonding_sim.core.constraints import ConstraintEnforcer, StageLimits
from bonding_sim.core.random_source import RandomSource
from bonding_sim.core.returns import GenerationContext
from bonding_sim.core.synthesizer import CandleSynthesizer, VolumeProfile


# ---------------------------------------------------------------------------
# Candle
# ---------------------------------------------------------------------------
def test_valid_candle_passes_check():
    c = Candle(open=100.0, high=110.0, low=95.0, close=105.0, volume=10.0)
    assert c.check() is c
    assert c.is_green
    assert c.change == pytest.approx(0.05)


@pytest.mark.parametrize(
    "fields",
    [
        dict(open=100.0, high=101.0, low=95.0, close=105.0, volume=1.0),
        dict(open=100.0, high=110.0, low=101.0, close=105.0, volume=1.0),
        dict(open=100.0, high=110.0, low=-1.0, close=105.0, volume=1.0),
        dict(open=100.0, high=110.0, low=95.0, close=105.0, volume=0.0),
        dict(open=0.0, high=110.0, low=0.0, close=105.0, volume=1.0),
    ],
)
def test_invariant_violations_raise(fields):
    with pytest.raises(CandleInvariantError):
        Candle(**fields).check()


def test_candles_are_frozen():
    c = Candle(open=1.0, high=1.0, low=1.0, close=1.0, volume=1.0)
    with pytest.raises(ValidationError):
        c.close = 2.0


def test_stamp_keeps_prices():
    c = Candle(open=1.0, high=2.0, low=0.5, close=1.5, volume=3.0).stamp(1_700_000_000)
    assert c.to_dict() == {
        "time": 1_700_000_000, "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5, "volume": 3.0,
    }


# ---------------------------------------------------------------------------
# ConstraintEnforcer
# ---------------------------------------------------------------------------
def test_pre_bonding_swing_clamp():
    enforcer = ConstraintEnforcer(StageLimits.pre_bonding(ceiling=1e8, floor=50.0))
    high, low = enforcer.clamp_wicks(1_000.0, 1_010.0, 2_000.0, 0.0)
    # body 10 → swing max(15, 5% of 1000) = 50
    assert high == pytest.approx(1_050.0)
    assert low == pytest.approx(950.0)


def test_pre_bonding_close_only_hits_far_ceiling():
    enforcer = ConstraintEnforcer(StageLimits.pre_bonding(ceiling=1e8, floor=50.0))
    assert enforcer.clamp_close(250_000.0) == 250_000.0
    assert enforcer.clamp_close(5e8) == 1e8
    assert enforcer.clamp_close(-10.0) == 50.0


def test_post_bonding_ceiling_and_wick_allowance():
    enforcer = ConstraintEnforcer(
        StageLimits.post_bonding(ceiling=100_000.0, floor=50.0, wick_allowance=0.005, max_drop=0.1)
    )
    assert enforcer.clamp_close(120_000.0) == 100_000.0
    high, low = enforcer.clamp_wicks(99_000.0, 100_000.0, 150_000.0, 10_000.0)
    assert high == pytest.approx(100_500.0)
    assert low == pytest.approx(89_100.0)


def test_wick_allowance_above_one_percent_rejected():
    with pytest.raises(ValueError):
        StageLimits.post_bonding(ceiling=100.0, floor=1.0, wick_allowance=0.02)


def test_universal_clamps_wrap_the_body():
    enforcer = ConstraintEnforcer(StageLimits.post_bonding(ceiling=100.0, floor=1.0))
    high, low = enforcer.clamp_wicks(80.0, 90.0, 85.0, -5.0)
    assert high == 90.0
    assert low == 0.0


# ---------------------------------------------------------------------------
# Synthesizer / volume
# ---------------------------------------------------------------------------
def test_volume_profile_floor_and_ema():
    profile = VolumeProfile((100.0, 100.0), move_sensitivity=0.0, noise=0.0, floor=500.0, decay=0.9)
    ctx = GenerationContext(cap=1.0, volume_avg=profile.initial_average())
    assert profile.sample(ctx, 0.3, RandomSource(0)) == 500.0
    assert ctx.volume_avg == pytest.approx(100.0 * 0.9 + 500.0 * 0.1)


def test_volume_scales_with_move():
    profile = VolumeProfile((1000.0, 1000.0), move_sensitivity=3.0, noise=0.0, floor=1.0, decay=0.98)
    ctx = GenerationContext(cap=1.0, volume_avg=1000.0)
    assert profile.sample(ctx, -0.1, RandomSource(0)) == pytest.approx(1300.0)


def test_emit_advances_context_and_checks():
    enforcer = ConstraintEnforcer(StageLimits.post_bonding(ceiling=100.0, floor=1.0))
    synth = CandleSynthesizer(RandomSource(3), enforcer)
    ctx = GenerationContext(cap=90.0, volume_avg=1.0, total=5)

    close = synth.close_for(ctx, 0.5)
    assert close == 100.0
    upper, lower = synth.body_wicks(ctx.cap, close, 1.0, lower_ratio=0.5)
    assert (upper, lower) == (10.0, 5.0)

    candle = synth.emit(ctx, close, upper, lower, 42.0)
    assert candle.open == 90.0
    assert candle.close == 100.0
    assert candle.high == pytest.approx(100.5)
    assert candle.low == pytest.approx(85.0)
    assert ctx.cap == 100.0
    assert ctx.step == 1


def test_cap_wicks_bounded_by_size(rng):
    enforcer = ConstraintEnforcer(StageLimits.post_bonding(ceiling=100.0, floor=1.0))
    synth = CandleSynthesizer(rng, enforcer)
    for _ in range(200):
        upper, lower = synth.cap_wicks(2.0, lower_ratio=2.0)
        assert 0.0 <= upper < 2.0
        assert 0.0 <= lower < 4.0

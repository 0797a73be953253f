import numpy as np
import pytest

from bonding_sim.core.random_source import RandomSource, mean


def test_same_seed_reproduces_stream():
    a = RandomSource(99)
    b = RandomSource(99)
    draws_a = [a.gaussian() for _ in range(50)] + [a.uniform(3, 7) for _ in range(50)]
    draws_b = [b.gaussian() for _ in range(50)] + [b.uniform(3, 7) for _ in range(50)]
    assert draws_a == draws_b


def test_different_seeds_diverge():
    a = RandomSource(1)
    b = RandomSource(2)
    assert [a.random() for _ in range(10)] != [b.random() for _ in range(10)]


def test_uniform_int_is_inclusive(rng):
    draws = {rng.uniform_int(0, 3) for _ in range(2000)}
    assert draws == {0, 1, 2, 3}


def test_uniform_stays_in_range(rng):
    for _ in range(1000):
        x = rng.uniform(-0.5, 1.5)
        assert -0.5 <= x < 1.5


def test_gaussian_moments(rng):
    samples = np.array([rng.gaussian() for _ in range(20000)])
    assert abs(samples.mean()) < 0.05
    assert abs(samples.std() - 1.0) < 0.05


@pytest.mark.parametrize("method", ["uniform", "uniform_int"])
def test_inverted_range_rejected(rng, method):
    with pytest.raises(ValueError):
        getattr(rng, method)(5, 1)


def test_choice_and_weighted_choice(rng):
    items = ["a", "b", "c"]
    assert {rng.choice(items) for _ in range(500)} == set(items)
    assert all(rng.weighted_choice(items, [0.0, 1.0, 0.0]) == "b" for _ in range(100))
    with pytest.raises(ValueError):
        rng.choice([])
    with pytest.raises(ValueError):
        rng.weighted_choice(items, [1.0, 1.0])


def test_mean_is_pure():
    assert mean([50_000, 150_000]) == 100_000.0
    with pytest.raises(ValueError):
        mean([])

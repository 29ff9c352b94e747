"""
Tests for the mortality models.
"""

import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from dispersal_sim import (
    ConstructionError,
    ExponentialMortality,
    InvalidParameterError,
    MortalityConfig,
    Particle,
    WeibullMortality,
    build_mortality,
)

DAY = 86400.0


def make_particles(n, age=0.0):
    return [Particle(lon=0.0, lat=0.0, age=age, id=i) for i in range(n)]


def test_exponential_death_frequency():
    """Empirical death frequency converges to 1 - exp(-rate * dt)."""
    rate = 1.0 / DAY
    dt = 0.5 * DAY
    model = ExponentialMortality(rate=rate, interval=dt, seed=12345)

    particles = make_particles(20000)
    killed = model.apply_many(particles)

    expected = 1.0 - math.exp(-rate * dt)
    assert killed / len(particles) == pytest.approx(expected, abs=0.02)
    assert model.death_probability(0.0, dt) == pytest.approx(expected)


def test_exponential_zero_rate_never_kills():
    """A zero rate keeps every particle alive."""
    model = ExponentialMortality(rate=0.0, interval=3600.0, seed=1)
    particles = make_particles(1000)

    assert model.apply_many(particles) == 0
    assert not any(p.dead for p in particles)


def test_exponential_cycles_scale_interval():
    """apply(dt, cycles=2) makes the same decisions as apply(2 * dt)."""
    dt = 3600.0
    a = ExponentialMortality(rate=1e-4, interval=dt, seed=7)
    b = ExponentialMortality(rate=1e-4, interval=dt, seed=7)

    pa = make_particles(500)
    pb = make_particles(500)
    for p, q in zip(pa, pb):
        a.apply(p, dt, cycles=2.0)
        b.apply(q, 2.0 * dt)

    assert [p.dead for p in pa] == [q.dead for q in pb]
    assert any(p.dead for p in pa)


def test_apply_uses_default_interval():
    """Without dt the model falls back to its configured interval."""
    a = ExponentialMortality(rate=1e-4, interval=1800.0, seed=3)
    b = ExponentialMortality(rate=1e-4, interval=0.0, seed=3)

    pa = make_particles(300)
    pb = make_particles(300)
    for p, q in zip(pa, pb):
        a.apply(p)
        b.apply(q, 1800.0)

    assert [p.dead for p in pa] == [q.dead for q in pb]


def test_dead_particles_are_skipped():
    """Already-dead particles are not re-tested."""
    model = ExponentialMortality(rate=1.0, interval=DAY, seed=2)
    particle = Particle(lon=0.0, lat=0.0, dead=True)

    assert model.apply(particle) is False
    assert particle.dead


def test_apply_many_records_death_time():
    """apply_many stamps the death time on killed particles."""
    model = ExponentialMortality(rate=1.0, interval=DAY, seed=5)
    particles = make_particles(10)

    killed = model.apply_many(particles, time=42.0)

    assert killed == 10
    assert all(p.death_time == 42.0 for p in particles)


def test_weibull_probability_matches_survivorship():
    """Conditional death probability is (S(t0) - S(t1)) / S(t0)."""
    model = WeibullMortality(lam=10.0, k=1.5, delta_t=DAY, units="days")
    age = 5 * DAY

    s0 = math.exp(-((4.0 / 10.0) ** 1.5))
    s1 = math.exp(-((5.0 / 10.0) ** 1.5))
    assert model.death_probability(age, DAY) == pytest.approx((s0 - s1) / s0)


def test_weibull_probability_nondecreasing_with_age():
    """For k > 1 the per-interval death probability never decreases with age."""
    model = WeibullMortality(lam=10.0, k=2.0, delta_t=7200.0, units="days")
    ages = np.linspace(0.0, 30 * DAY, 400)

    probs = np.array([model.death_probability(a, 7200.0) for a in ages])

    assert np.all(np.diff(probs) >= -1e-15)
    assert np.all((probs >= 0.0) & (probs <= 1.0))


def test_weibull_newborn_has_zero_probability():
    """At age zero the interval is empty and nothing can die."""
    model = WeibullMortality(lam=1.0, k=0.5, seed=9)
    assert model.death_probability(0.0, 7200.0) == 0.0


def test_weibull_zero_survivorship_forces_death():
    """When S(t0) underflows to zero the probability is 1, not NaN."""
    model = WeibullMortality(lam=1e-6, k=2.0, delta_t=3600.0, units="days", seed=4)

    assert model.survivorship(1.0) == 0.0
    assert model.death_probability(DAY, 3600.0) == 1.0

    particle = Particle(lon=0.0, lat=0.0, age=DAY)
    assert model.apply(particle)
    assert particle.dead


def test_weibull_huge_exponent_forces_death():
    """(t/lambda)**k beyond float range saturates S(t) to 0 instead of raising."""
    model = WeibullMortality(lam=1e-3, k=100.0, units="days", seed=6)

    assert model.survivorship(30.0) == 0.0
    assert model.death_probability(30 * DAY, 7200.0) == 1.0

    particle = Particle(lon=0.0, lat=0.0, age=30 * DAY)
    assert model.apply(particle)
    assert particle.dead


@pytest.mark.parametrize("kwargs", [
    {"lam": 0.0, "k": 1.0},
    {"lam": -1.0, "k": 1.0},
    {"lam": 1.0, "k": 0.0},
    {"lam": 1.0, "k": float("nan")},
    {"lam": 1.0, "k": 1.0, "delta_t": 0.0},
    {"lam": 1.0, "k": 1.0, "units": "fortnights"},
])
def test_weibull_invalid_parameters(kwargs):
    """Non-positive shape/scale and unknown units fail at construction."""
    with pytest.raises(InvalidParameterError):
        WeibullMortality(**kwargs)


def test_exponential_invalid_parameters():
    """Negative or non-finite rates fail at construction."""
    with pytest.raises(ConstructionError):
        ExponentialMortality(rate=-1.0)
    with pytest.raises(ConstructionError):
        ExponentialMortality(rate=float("inf"))
    with pytest.raises(ConstructionError):
        ExponentialMortality(rate=1.0, interval=-5.0)


def test_clone_has_independent_stream():
    """Clones keep the configuration but never share the generator."""
    model = WeibullMortality(lam=3.0, k=1.2, delta_t=600.0, units="hours", seed=11)
    a = model.clone()
    b = model.clone()

    assert a.params() == model.params()
    assert a.rng is not model.rng and b.rng is not a.rng
    assert not np.array_equal(a.rng.random(8), b.rng.random(8))


def test_clone_does_not_copy_source_state():
    """A clone's draws differ from what the source would draw next."""
    model = ExponentialMortality(rate=1e-3, interval=60.0, seed=21)
    twin = ExponentialMortality(rate=1e-3, interval=60.0, seed=21)

    clone = model.clone()

    assert not np.array_equal(clone.rng.random(8), twin.rng.random(8))


def test_clones_are_reproducible_from_seed():
    """Clones of identically seeded models produce identical streams."""
    a = ExponentialMortality(rate=1e-3, interval=60.0, seed=99).clone()
    b = ExponentialMortality(rate=1e-3, interval=60.0, seed=99).clone()

    assert np.array_equal(a.rng.random(16), b.rng.random(16))


def test_concurrent_clones_get_distinct_streams():
    """Cloning one model from many threads never hands out the same seed twice."""
    model = ExponentialMortality(rate=1e-3, interval=60.0, seed=13)

    with ThreadPoolExecutor(max_workers=8) as executor:
        clones = list(executor.map(lambda _: model.clone(), range(64)))

    keys = {tuple(c.rng.random(4)) for c in clones}
    assert len(keys) == 64


def test_clone_with_explicit_seed():
    """An explicit seed overrides the spawned one."""
    model = ExponentialMortality(rate=1e-3, interval=60.0, seed=1)
    a = model.clone(seed=5)
    b = ExponentialMortality(rate=1e-3, interval=60.0, seed=5)

    assert np.array_equal(a.rng.random(4), b.rng.random(4))


def test_build_exponential_converts_units():
    """Configured rates per day become per-second rates."""
    config = MortalityConfig(mortality_type="Exponential", mortality_rate=0.5, mortality_units="Days")
    model = build_mortality(config, interval=3600.0)

    assert isinstance(model, ExponentialMortality)
    assert model.rate == pytest.approx(0.5 / DAY)
    assert model.interval == 3600.0


def test_build_weibull_defaults():
    """Weibull parameters come through as (lambda, k) in the configured units."""
    config = MortalityConfig(mortality_type="weibull")
    model = build_mortality(config)

    assert isinstance(model, WeibullMortality)
    assert model.lam == pytest.approx(1 / 0.0635)
    assert model.k == pytest.approx(0.7559)
    assert model.delta_t == 7200.0
    assert model.units == "Days"


def test_build_unknown_type():
    """Unknown model names are rejected."""
    with pytest.raises(InvalidParameterError):
        build_mortality(MortalityConfig(mortality_type="Gompertz"))

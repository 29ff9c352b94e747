"""
Mortality models for Lagrangian dispersal simulation.

Each model decides, once per tick, whether a particle dies. Models own their
random generator, so a single instance must not be shared between workers:
give each worker its own ``clone()``.

Both variants take the interval ``dt`` (seconds) at call time. When it is
omitted the exponential model falls back to its configured ``interval`` and
the Weibull model to its ``delta_t``.
"""

import logging
import math
import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

import numpy as np

from .errors import InvalidParameterError
from .particle import Particle
from .units import unit_seconds

SeedLike = Union[None, int, np.random.SeedSequence]


def _seed_sequence(seed: SeedLike) -> np.random.SeedSequence:
    if isinstance(seed, np.random.SeedSequence):
        return seed
    return np.random.SeedSequence(seed)


class MortalityModel(ABC):
    """
    Base class for stochastic per-tick mortality.

    Subclasses provide ``death_probability`` and ``params``; the random draw,
    the ``cycles`` multiplier and cloning are handled here.
    """

    name = "base"

    def __init__(self, seed: SeedLike = None):
        self._seed_seq = _seed_sequence(seed)
        self._spawn_lock = threading.Lock()
        self.rng = np.random.default_rng(self._seed_seq)

    @property
    @abstractmethod
    def default_interval(self) -> float:
        """Interval (seconds) used when ``apply`` is called without ``dt``."""

    @abstractmethod
    def params(self) -> dict:
        """Constructor arguments describing this model's configuration."""

    @abstractmethod
    def death_probability(self, age: float, dt: float) -> float:
        """
        Probability that a particle of ``age`` seconds dies during the
        interval of ``dt`` seconds ending at ``age``.
        """

    def _dies(self, draw: float, age: float, dt: float) -> bool:
        return draw < self.death_probability(age, dt)

    def _interval(self, dt: Optional[float], cycles: float) -> float:
        if dt is None:
            dt = self.default_interval
        return float(dt) * float(cycles)

    def apply(self, particle: Particle, dt: Optional[float] = None, cycles: float = 1.0) -> bool:
        """
        Apply probabilistic mortality to a particle.

        Args:
            particle: Particle to test; marked dead on a death draw
            dt: Interval length in seconds (model default if None)
            cycles: Multiplier on ``dt`` for sub-stepped application

        Returns:
            True if the particle died during this call
        """
        if particle.dead:
            return False
        if self._dies(self.rng.random(), particle.age, self._interval(dt, cycles)):
            particle.dead = True
            return True
        return False

    def apply_many(
        self,
        particles: Iterable[Particle],
        dt: Optional[float] = None,
        cycles: float = 1.0,
        time: Optional[float] = None
    ) -> int:
        """
        Apply mortality to every alive particle in ``particles``.

        Args:
            particles: Particles to test
            dt: Interval length in seconds (model default if None)
            cycles: Multiplier on ``dt``
            time: Simulation time recorded as the death time

        Returns:
            Number of particles killed
        """
        killed = 0
        for particle in particles:
            if self.apply(particle, dt, cycles):
                if time is not None:
                    particle.death_time = time
                killed += 1
        return killed

    def clone(self, seed: SeedLike = None) -> "MortalityModel":
        """
        Create a new model with the same configuration and its own stream.

        The new generator is seeded from ``seed`` if given, otherwise from a
        child spawned off this model's seed sequence. The source generator is
        never copied or shared. Safe to call from several threads.
        """
        if seed is None:
            # spawn() advances the sequence's child counter
            with self._spawn_lock:
                seed = self._seed_seq.spawn(1)[0]
        return type(self)(**self.params(), seed=seed)

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.params().items())
        return f"{type(self).__name__}({args})"


class ExponentialMortality(MortalityModel):
    """
    Constant-hazard mortality.

    Survival over an interval ``dt`` is ``exp(-rate * dt)``. A uniform draw
    greater than the survival probability kills the particle.
    """

    name = "exponential"

    def __init__(self, rate: float, interval: float = 0.0, seed: SeedLike = None):
        """
        Args:
            rate: Mortality rate (events per second)
            interval: Default interval length (seconds)
            seed: Seed or SeedSequence for the owned generator
        """
        rate = float(rate)
        interval = float(interval)
        if not math.isfinite(rate) or rate < 0:
            raise InvalidParameterError(f"Mortality rate must be finite and >= 0, got {rate}")
        if not math.isfinite(interval) or interval < 0:
            raise InvalidParameterError(f"Mortality interval must be finite and >= 0, got {interval}")
        self.rate = rate
        self.interval = interval
        super().__init__(seed)
        logging.debug("Exponential mortality: rate=%g /s, interval=%g s", rate, interval)

    @property
    def default_interval(self) -> float:
        return self.interval

    def params(self) -> dict:
        return {"rate": self.rate, "interval": self.interval}

    def survival_probability(self, dt: float) -> float:
        return math.exp(-self.rate * dt)

    def death_probability(self, age: float, dt: float) -> float:
        return 1.0 - self.survival_probability(dt)

    def _dies(self, draw: float, age: float, dt: float) -> bool:
        return draw > self.survival_probability(dt)


class WeibullMortality(MortalityModel):
    """
    Age-dependent mortality from a Weibull survivorship curve.

    ``S(t) = exp(-(t / lam) ** k)`` with ``t`` in ``units``. The death
    probability for the interval ``[age - dt, age]`` is the conditional
    ``(S(t0) - S(t1)) / S(t0)``.
    """

    name = "weibull"

    def __init__(
        self,
        lam: float,
        k: float,
        delta_t: float = 7200.0,
        units: str = "days",
        seed: SeedLike = None
    ):
        """
        Args:
            lam: Scale parameter, in ``units``
            k: Shape parameter
            delta_t: Default interval length (seconds)
            units: Time unit of ``lam`` ("days", "hours", ...)
            seed: Seed or SeedSequence for the owned generator
        """
        lam = float(lam)
        k = float(k)
        delta_t = float(delta_t)
        if not math.isfinite(lam) or lam <= 0:
            raise InvalidParameterError(f"Weibull scale (lambda) must be > 0, got {lam}")
        if not math.isfinite(k) or k <= 0:
            raise InvalidParameterError(f"Weibull shape (k) must be > 0, got {k}")
        if not math.isfinite(delta_t) or delta_t <= 0:
            raise InvalidParameterError(f"Weibull delta_t must be > 0, got {delta_t}")
        self.lam = lam
        self.k = k
        self.delta_t = delta_t
        self.units = units
        self._unit_seconds = unit_seconds(units)
        super().__init__(seed)
        logging.debug("Weibull mortality: lambda=%g %s, k=%g, delta_t=%g s", lam, units, k, delta_t)

    @property
    def default_interval(self) -> float:
        return self.delta_t

    def params(self) -> dict:
        return {"lam": self.lam, "k": self.k, "delta_t": self.delta_t, "units": self.units}

    def survivorship(self, t: float) -> float:
        """S(t) for ``t`` in the model's units. Saturates to 0.0 for very large t."""
        with np.errstate(over="ignore"):
            return float(np.exp(-np.power(t / self.lam, self.k)))

    def death_probability(self, age: float, dt: float) -> float:
        t1 = max(age, 0.0) / self._unit_seconds
        t0 = max(t1 - dt / self._unit_seconds, 0.0)
        s0 = self.survivorship(t0)
        if s0 == 0.0:
            return 1.0
        s1 = self.survivorship(t1)
        return min(max((s0 - s1) / s0, 0.0), 1.0)


MORTALITY_TYPES = {
    ExponentialMortality.name: ExponentialMortality,
    WeibullMortality.name: WeibullMortality,
}


def build_mortality(config, interval: Optional[float] = None, seed: SeedLike = None) -> MortalityModel:
    """
    Build a mortality model from a ``MortalityConfig``.

    The configured exponential rate is per ``mortality_units`` and is
    converted to a per-second rate. Weibull parameters are (lambda, k) with
    lambda in ``mortality_units``.

    Args:
        config: MortalityConfig instance
        interval: Default interval for the exponential model (seconds)
        seed: Overrides ``config.seed`` when given
    """
    kind = str(config.mortality_type).strip().lower()
    if seed is None:
        seed = config.seed
    if kind == ExponentialMortality.name:
        rate = config.mortality_rate / unit_seconds(config.mortality_units)
        return ExponentialMortality(
            rate=rate,
            interval=config.delta_t if interval is None else interval,
            seed=seed
        )
    if kind == WeibullMortality.name:
        params = tuple(config.mortality_parameters)
        if len(params) != 2:
            raise InvalidParameterError(
                f"Weibull mortality needs (lambda, k), got {len(params)} parameters"
            )
        return WeibullMortality(
            lam=params[0],
            k=params[1],
            delta_t=config.delta_t,
            units=config.mortality_units,
            seed=seed
        )
    raise InvalidParameterError(
        f"Unknown mortality type '{config.mortality_type}'. "
        f"Expected one of {sorted(MORTALITY_TYPES)}"
    )

"""
Configuration for dispersal runs.

Values are plain constructor arguments for the core models; a JSON file with
the same keys can be loaded with ``load_config``.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Optional, Tuple

from .errors import InvalidParameterError
from .units import unit_seconds


@dataclass
class MortalityConfig:
    """Mortality model selection and parameters."""

    mortality_type: str = "Exponential"
    mortality_rate: float = 0.0            # events per mortality_units
    mortality_parameters: Tuple[float, float] = (1 / 0.0635, 0.7559)  # Weibull (lambda, k)
    mortality_units: str = "Days"
    delta_t: float = 7200.0                # seconds
    seed: Optional[int] = None

    def __post_init__(self):
        self.mortality_parameters = tuple(float(p) for p in self.mortality_parameters)
        # fail early on a bad unit string
        unit_seconds(self.mortality_units)

    @classmethod
    def from_dict(cls, data: dict) -> "MortalityConfig":
        return cls(**_checked(cls, data))


@dataclass
class SimulationConfig:
    """Settings for a single-site dispersal run."""

    num_particles: int = 1000
    release_lon: float = 0.0
    release_lat: float = 0.0
    release_depth: float = 0.0
    release_spread: float = 0.0   # degrees
    time_step: float = 3600.0     # seconds
    duration: float = 30 * 86400.0
    workers: int = 1
    seed: Optional[int] = None
    mortality: MortalityConfig = field(default_factory=MortalityConfig)

    def __post_init__(self):
        if self.num_particles < 0:
            raise InvalidParameterError(f"num_particles must be >= 0, got {self.num_particles}")
        if self.time_step <= 0:
            raise InvalidParameterError(f"time_step must be > 0, got {self.time_step}")
        if self.duration < 0:
            raise InvalidParameterError(f"duration must be >= 0, got {self.duration}")
        if self.workers < 1:
            raise InvalidParameterError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationConfig":
        data = _checked(cls, data)
        mortality = data.get("mortality", {})
        if isinstance(mortality, dict):
            data["mortality"] = MortalityConfig.from_dict(mortality)
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


def _checked(cls, data: dict) -> dict:
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise InvalidParameterError(
            f"Unknown {cls.__name__} keys: {sorted(unknown)}. Expected a subset of {sorted(known)}"
        )
    return dict(data)


def load_config(config_file: str) -> SimulationConfig:
    """Load configuration from JSON file."""
    with open(config_file, 'r') as f:
        data = json.load(f)
    logging.info("Loaded configuration from %s", config_file)
    return SimulationConfig.from_dict(data)

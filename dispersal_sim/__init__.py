"""
Dispersal Simulator - the per-tick survival and environmental-sampling core of
a Lagrangian larval dispersal model.

This package provides mortality models, nearest-neighbour field sampling,
natural cubic splines and an equirectangular projection.
"""

__version__ = "0.1.0"
__author__ = "dispersal_sim contributors"

from .errors import (
    ConstructionError,
    DimensionMismatchError,
    GridError,
    InvalidParameterError,
    NonMonotonicSequenceError,
    OutOfDomainError,
    TooFewPointsError,
)
from .particle import Particle, ParticleCloud
from .mortality import ExponentialMortality, MortalityModel, WeibullMortality, build_mortality
from .indexing import Bounds, IndexLookup, LookupResult
from .field import NO_DATA, FieldSampler, Grid, is_no_data
from .spline import SplineFunction, SplineInterpolator
from .projection import EquirectangularProjection
from .config import MortalityConfig, SimulationConfig, load_config
from .simulator import DispersalSimulator

__all__ = [
    "ConstructionError",
    "DimensionMismatchError",
    "GridError",
    "InvalidParameterError",
    "NonMonotonicSequenceError",
    "OutOfDomainError",
    "TooFewPointsError",
    "Particle",
    "ParticleCloud",
    "MortalityModel",
    "ExponentialMortality",
    "WeibullMortality",
    "build_mortality",
    "Bounds",
    "IndexLookup",
    "LookupResult",
    "NO_DATA",
    "FieldSampler",
    "Grid",
    "is_no_data",
    "SplineFunction",
    "SplineInterpolator",
    "EquirectangularProjection",
    "MortalityConfig",
    "SimulationConfig",
    "load_config",
    "DispersalSimulator",
]

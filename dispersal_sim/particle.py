"""
Particle module for Lagrangian dispersal simulation.

Defines individual particles and particle clouds for tracking larvae.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Particle:
    """Represents a single dispersing particle in the Lagrangian simulation."""

    # Position (lon, lat in degrees, depth in meters)
    lon: float
    lat: float
    depth: float = 0.0

    # Elapsed simulated time since release (seconds)
    age: float = 0.0

    # Particle state
    dead: bool = False
    death_time: Optional[float] = None
    id: int = 0

    # Latest environmental samples, keyed by field name
    covariates: Dict[str, float] = field(default_factory=dict)

    def kill(self, time: Optional[float] = None):
        """Mark the particle as dead."""
        self.dead = True
        if time is not None:
            self.death_time = time

    @property
    def alive(self) -> bool:
        return not self.dead


class ParticleCloud:
    """Manages a collection of particles for dispersal simulation."""

    def __init__(self):
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def add_particle(self, particle: Particle):
        """Add a particle to the cloud."""
        self.particles.append(particle)

    def create_particles(
        self,
        release_lon: float,
        release_lat: float,
        release_depth: float,
        num_particles: int,
        spread_deg: float = 0.0,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Create a cloud of particles at a release site.

        Args:
            release_lon: Release longitude (degrees)
            release_lat: Release latitude (degrees)
            release_depth: Release depth (meters)
            num_particles: Number of particles to create
            spread_deg: Standard deviation of the horizontal offset (degrees)
            rng: Random generator used for the offsets
        """
        if rng is None:
            rng = np.random.default_rng()

        if spread_deg > 0:
            lon_offsets = rng.normal(0, spread_deg, num_particles)
            lat_offsets = rng.normal(0, spread_deg, num_particles)
        else:
            lon_offsets = np.zeros(num_particles)
            lat_offsets = np.zeros(num_particles)

        start = len(self.particles)
        for i in range(num_particles):
            self.add_particle(Particle(
                lon=release_lon + float(lon_offsets[i]),
                lat=release_lat + float(lat_offsets[i]),
                depth=release_depth,
                id=start + i
            ))

    def get_alive_particles(self) -> List[Particle]:
        """Return list of particles that are still alive."""
        return [p for p in self.particles if not p.dead]

    def get_dead_particles(self) -> List[Particle]:
        """Return list of dead particles."""
        return [p for p in self.particles if p.dead]

    def partition(self, n: int) -> List[List[Particle]]:
        """
        Split the alive particles into ``n`` disjoint, roughly equal groups.

        Returns:
            List of at most ``n`` non-empty lists
        """
        alive = self.get_alive_particles()
        n = max(1, min(n, len(alive)))
        return [alive[i::n] for i in range(n) if alive[i::n]]

    def get_positions(self) -> np.ndarray:
        """
        Get positions of all alive particles.

        Returns:
            Array of shape (n, 3) with [lon, lat, depth]
        """
        alive = self.get_alive_particles()
        if not alive:
            return np.array([]).reshape(0, 3)
        return np.array([[p.lon, p.lat, p.depth] for p in alive])

    def get_ages(self) -> np.ndarray:
        """Ages (seconds) of all alive particles."""
        return np.array([p.age for p in self.get_alive_particles()], dtype=float)

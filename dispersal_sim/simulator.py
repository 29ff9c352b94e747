"""
Main simulator module integrating all components.

Drives the per-tick survival and sampling core over a particle cloud.
Particle motion is delegated to an optional ``mover`` callable; the
simulator itself does not integrate velocities.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import numpy as np

from .config import SimulationConfig
from .field import FieldSampler
from .mortality import MortalityModel, build_mortality
from .particle import Particle, ParticleCloud

# mover(particle, time, dt) updates the particle's position in place
Mover = Callable[[Particle, float, float], None]


class DispersalSimulator:
    """
    Lagrangian dispersal driver.

    Each tick, every alive particle is moved (if a mover is given), aged by
    ``dt``, tested for mortality and, if it survives, sampled against every
    environmental field.
    """

    def __init__(
        self,
        release_lon: float,
        release_lat: float,
        release_depth: float = 0.0,
        num_particles: int = 1000,
        mortality: Optional[MortalityModel] = None,
        samplers: Optional[Sequence[FieldSampler]] = None,
        mover: Optional[Mover] = None,
        release_spread: float = 0.0,
        time_step: float = 3600.0,
        start_time: float = 0.0,
        workers: int = 1,
        seed: Optional[int] = None
    ):
        """
        Initialize dispersal simulator.

        Args:
            release_lon: Release longitude (degrees)
            release_lat: Release latitude (degrees)
            release_depth: Release depth (meters)
            num_particles: Number of particles to simulate
            mortality: Prototype mortality model; each worker gets a clone
            samplers: Environmental fields sampled for surviving particles
            mover: Optional position update hook
            release_spread: Horizontal release spread (degrees)
            time_step: Default tick length (seconds)
            start_time: Clock value at release (seconds)
            workers: Number of disjoint particle partitions per tick
            seed: Seed for release positions
        """
        self.release_lon = release_lon
        self.release_lat = release_lat
        self.release_depth = release_depth
        self.num_particles = num_particles

        self.rng = np.random.default_rng(seed)
        self.particle_cloud = ParticleCloud()
        self.particle_cloud.create_particles(
            release_lon=release_lon,
            release_lat=release_lat,
            release_depth=release_depth,
            num_particles=num_particles,
            spread_deg=release_spread,
            rng=self.rng
        )

        self.mortality = mortality
        self.samplers: List[FieldSampler] = list(samplers or [])
        self.mover = mover
        self.workers = max(1, int(workers))

        # one independent stream per worker
        if mortality is not None:
            self._worker_models = [mortality.clone() for _ in range(self.workers)]
        else:
            self._worker_models = [None] * self.workers

        # Simulation state
        self.start_time = start_time
        self.current_time = start_time
        self.time_step = time_step

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        samplers: Optional[Sequence[FieldSampler]] = None,
        mover: Optional[Mover] = None
    ) -> "DispersalSimulator":
        mortality = build_mortality(config.mortality, interval=config.time_step)
        return cls(
            release_lon=config.release_lon,
            release_lat=config.release_lat,
            release_depth=config.release_depth,
            num_particles=config.num_particles,
            mortality=mortality,
            samplers=samplers,
            mover=mover,
            release_spread=config.release_spread,
            time_step=config.time_step,
            workers=config.workers,
            seed=config.seed
        )

    def _step_partition(
        self,
        particles: List[Particle],
        model: Optional[MortalityModel],
        dt: float
    ) -> int:
        end_time = self.current_time + dt
        killed = 0
        for particle in particles:
            if self.mover is not None:
                self.mover(particle, self.current_time, dt)
            particle.age += dt

            if model is not None and model.apply(particle, dt):
                particle.death_time = end_time
                killed += 1
                continue

            for sampler in self.samplers:
                sampler.sample(particle, end_time)
        return killed

    def step(self, dt: Optional[float] = None) -> int:
        """
        Advance simulation by one time step.

        Args:
            dt: Time step in seconds (uses default if None)

        Returns:
            Number of particles that died during the step
        """
        if dt is None:
            dt = self.time_step

        partitions = self.particle_cloud.partition(self.workers)
        if not partitions:
            self.current_time += dt
            return 0

        if len(partitions) == 1:
            killed = self._step_partition(partitions[0], self._worker_models[0], dt)
        else:
            with ThreadPoolExecutor(max_workers=len(partitions)) as executor:
                futures = [
                    executor.submit(self._step_partition, part, model, dt)
                    for part, model in zip(partitions, self._worker_models)
                ]
                killed = sum(f.result() for f in futures)

        self.current_time += dt
        logging.debug("t=%.0f s | %d died this step", self.current_time, killed)
        return killed

    def run(
        self,
        duration: float,
        progress_callback: Optional[Callable[[float, int], None]] = None
    ):
        """
        Run simulation for specified duration.

        Args:
            duration: Simulation duration in seconds
            progress_callback: Optional callback function(time, alive_count)
        """
        steps = int(round(duration / self.time_step))
        logging.info("Running %d steps of %.0f s for %d particles",
                     steps, self.time_step, len(self.particle_cloud))

        for step_num in range(steps):
            self.step()

            if progress_callback and (step_num % 10 == 0):
                alive_count = len(self.particle_cloud.get_alive_particles())
                progress_callback(self.current_time, alive_count)

            # Early termination if all particles died
            if len(self.particle_cloud.get_alive_particles()) == 0:
                logging.info("All particles dead at t=%.0f s", self.current_time)
                break

    def get_statistics(self) -> dict:
        """
        Get simulation statistics.

        Returns:
            Dictionary with statistics
        """
        alive = self.particle_cloud.get_alive_particles()
        dead = self.particle_cloud.get_dead_particles()
        total = len(self.particle_cloud.particles)

        return {
            "total_particles": total,
            "alive_particles": len(alive),
            "dead_particles": len(dead),
            "simulation_time": self.current_time - self.start_time,
            "fraction_dead": len(dead) / total if total else 0.0
        }

"""
Command-line interface for the dispersal simulator.

Runs a stationary survival experiment at one release site and logs the
observed survival against the model expectation.
"""

import argparse
import logging
import math
import sys

from .config import MortalityConfig, SimulationConfig, load_config
from .errors import ConstructionError
from .mortality import ExponentialMortality, build_mortality
from .simulator import DispersalSimulator
from .units import from_seconds


def progress_callback(time: float, alive_count: int):
    """Log simulation progress."""
    logging.info("Time: %.2f days, Alive particles: %d", time / 86400.0, alive_count)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lagrangian larval dispersal simulator (survival core)"
    )

    parser.add_argument("-c", "--config", type=str, help="Configuration file (JSON)")
    parser.add_argument("--lon", type=float, default=0.0, help="Release longitude (degrees, default: 0)")
    parser.add_argument("--lat", type=float, default=0.0, help="Release latitude (degrees, default: 0)")
    parser.add_argument("--depth", type=float, default=0.0, help="Release depth (meters, default: 0)")
    parser.add_argument("--particles", type=int, default=1000, help="Number of particles (default: 1000)")
    parser.add_argument(
        "--duration",
        type=float,
        default=30 * 86400.0,
        help="Simulation duration in seconds (default: 2592000 = 30 days)"
    )
    parser.add_argument("--time-step", type=float, default=3600.0, help="Time step in seconds (default: 3600)")
    parser.add_argument(
        "--mortality-type",
        type=str,
        default="Exponential",
        choices=["Exponential", "Weibull", "exponential", "weibull"],
        help="Mortality model (default: Exponential)"
    )
    parser.add_argument("--mortality-rate", type=float, default=0.0,
                        help="Exponential mortality rate per --mortality-units (default: 0)")
    parser.add_argument("--weibull-lambda", type=float, default=1 / 0.0635,
                        help="Weibull scale in --mortality-units (default: 15.75)")
    parser.add_argument("--weibull-k", type=float, default=0.7559, help="Weibull shape (default: 0.7559)")
    parser.add_argument("--mortality-units", type=str, default="Days", help="Mortality time units (default: Days)")
    parser.add_argument("--workers", type=int, default=1, help="Worker partitions per step (default: 1)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: INFO)")
    return parser


def config_from_args(args) -> SimulationConfig:
    if args.config:
        return load_config(args.config)
    mortality = MortalityConfig(
        mortality_type=args.mortality_type,
        mortality_rate=args.mortality_rate,
        mortality_parameters=(args.weibull_lambda, args.weibull_k),
        mortality_units=args.mortality_units,
        delta_t=args.time_step,
        seed=args.seed
    )
    return SimulationConfig(
        num_particles=args.particles,
        release_lon=args.lon,
        release_lat=args.lat,
        release_depth=args.depth,
        time_step=args.time_step,
        duration=args.duration,
        workers=args.workers,
        seed=args.seed,
        mortality=mortality
    )


def expected_survival(config: SimulationConfig, duration: float) -> float:
    """Survival fraction the configured model predicts after ``duration`` seconds."""
    model = build_mortality(config.mortality, interval=config.time_step)
    if isinstance(model, ExponentialMortality):
        return math.exp(-model.rate * duration)
    return model.survivorship(from_seconds(duration, model.units))


def main(argv=None):
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s"
    )

    try:
        config = config_from_args(args)
        simulator = DispersalSimulator.from_config(config)
    except (ConstructionError, ValueError, OSError) as e:
        logging.error("Setup failed: %s", e)
        sys.exit(1)

    logging.info("=" * 60)
    logging.info("Lagrangian Dispersal Simulator")
    logging.info("=" * 60)
    logging.info("Release: (%.4f°, %.4f°) at %.1f m", config.release_lon, config.release_lat, config.release_depth)
    logging.info("Particles: %d", config.num_particles)
    logging.info("Duration: %.2f days, step %.0f s", config.duration / 86400.0, config.time_step)
    logging.info("Mortality: %r", simulator.mortality)

    simulator.run(duration=config.duration, progress_callback=progress_callback)

    stats = simulator.get_statistics()
    logging.info("Simulation complete!")
    logging.info("Dead particles: %d (%.1f%%)", stats["dead_particles"], stats["fraction_dead"] * 100)
    logging.info("Expected survival: %.3f, observed: %.3f",
                 expected_survival(config, stats["simulation_time"]), 1.0 - stats["fraction_dead"])
    return stats


if __name__ == "__main__":
    main()

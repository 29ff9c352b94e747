"""
Example script demonstrating the Python API.
"""

import logging

import numpy as np

from dispersal_sim import (
    DispersalSimulator,
    EquirectangularProjection,
    FieldSampler,
    Grid,
    SplineInterpolator,
    WeibullMortality,
)

DAY = 86400.0


def build_temperature_field() -> FieldSampler:
    """Synthetic daily sea-surface temperature resampled to 6-hourly."""
    daily_t = np.arange(0.0, 31 * DAY, DAY)
    daily_sst = 26.0 + 1.5 * np.sin(daily_t / (10 * DAY))

    six_hourly = np.arange(0.0, 30 * DAY + 1, 6 * 3600.0)
    sst = SplineInterpolator().interpolate(daily_t, daily_sst)(six_hourly)

    lats = np.linspace(-30.0, -15.0, 31)
    lons = np.linspace(145.0, 160.0, 31)
    values = np.broadcast_to(sst[:, None, None], (sst.size, lats.size, lons.size))
    return FieldSampler(Grid(time=six_hourly, lat=lats, lon=lons, values=values, name="sst"))


def main():
    """Run example simulation."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")

    prj = EquirectangularProjection(origin_lat=-23.0)
    reef = [(151.8, -23.6), (152.2, -23.6), (152.2, -23.3), (151.8, -23.3)]
    release_lon, release_lat = prj.polygon_centroid(reef)
    logging.info("Release centroid: (%.3f, %.3f)", release_lon, release_lat)

    def drift(particle, time, dt):
        # 0.1 m/s eastward
        x, y = prj.forward(particle.lon, particle.lat)
        particle.lon, particle.lat = prj.inverse(x + 0.1 * dt, y)

    simulator = DispersalSimulator(
        release_lon=release_lon,
        release_lat=release_lat,
        num_particles=2000,
        mortality=WeibullMortality(lam=1 / 0.0635, k=0.7559, units="days", seed=42),
        samplers=[build_temperature_field()],
        mover=drift,
        release_spread=0.05,
        time_step=6 * 3600.0,
        workers=4,
        seed=7
    )

    def progress(time, alive):
        logging.info("  Time: %.1f days, Alive: %d", time / DAY, alive)

    simulator.run(duration=30 * DAY, progress_callback=progress)

    for key, value in simulator.get_statistics().items():
        logging.info("  %s: %s", key, value)


if __name__ == "__main__":
    main()

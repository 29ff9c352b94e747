"""
Environmental field sampling.

A ``Grid`` holds a 3-D scalar field indexed by (time, lat, lon). A
``FieldSampler`` resolves a query to the nearest grid cell and returns the
stored value, or ``NO_DATA`` when the query lies outside any axis.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd
import xarray as xr

from .errors import GridError, InvalidParameterError
from .indexing import Bounds, IndexLookup
from .particle import Particle

# Returned for queries that fall outside the grid
NO_DATA = float("nan")

TimeLike = Union[float, int, datetime, np.datetime64, pd.Timestamp]

LON_CONVENTIONS = ("180", "360")

EPOCH = pd.Timestamp("1970-01-01", tz="UTC")


def is_no_data(value) -> bool:
    """True if ``value`` is the no-data sentinel."""
    return bool(np.isnan(value))


def wrap_longitude(lon, convention: str = "180"):
    """
    Wrap longitudes into [-180, 180) ("180") or [0, 360) ("360").

    Works on scalars and arrays.
    """
    if convention == "180":
        return ((lon + 180.0) % 360.0) - 180.0
    if convention == "360":
        return lon % 360.0
    raise InvalidParameterError(f"Unknown longitude convention '{convention}', expected one of {LON_CONVENTIONS}")


def time_to_seconds(t: TimeLike) -> float:
    """
    Convert a time value to seconds since the Unix epoch.

    Plain numbers are returned unchanged. Naive datetimes are taken as UTC.
    """
    if isinstance(t, (int, float, np.integer, np.floating)):
        return float(t)
    ts = pd.Timestamp(t)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.value / 1e9


def _axis_seconds(values: np.ndarray) -> np.ndarray:
    if values.dtype == object:
        # datetime / Timestamp objects; naive ones are taken as UTC
        stamps = pd.to_datetime(values.ravel(), utc=True)
        seconds = (stamps - EPOCH) / pd.Timedelta(seconds=1)
        return np.asarray(seconds, dtype=np.float64).reshape(values.shape)
    if np.issubdtype(values.dtype, np.datetime64):
        return values.astype("datetime64[ns]").astype(np.int64) / 1e9
    return values.astype(np.float64)


@dataclass(frozen=True, eq=False)
class Grid:
    """
    Read-only 3-D scalar field.

    ``values`` has shape (len(time), len(lat), len(lon)); all three axes are
    strictly increasing. Time is in seconds since the epoch (or any
    consistent clock).
    """

    time: np.ndarray
    lat: np.ndarray
    lon: np.ndarray
    values: np.ndarray
    name: str = "field"

    def __post_init__(self):
        arrays = {
            "time": np.array(_axis_seconds(np.asarray(self.time))),
            "lat": np.array(self.lat, dtype=np.float64),
            "lon": np.array(self.lon, dtype=np.float64),
            "values": np.array(self.values),
        }
        # private read-only copies
        for attr, arr in arrays.items():
            arr.setflags(write=False)
            object.__setattr__(self, attr, arr)
        values = self.values
        if values.ndim != 3:
            raise GridError(f"Grid '{self.name}' values must be 3-D, got shape {values.shape}")
        expected = (len(self.time), len(self.lat), len(self.lon))
        if values.shape != expected:
            raise GridError(
                f"Grid '{self.name}' values shape {values.shape} does not match axes {expected}"
            )

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.values.shape

    def read(self, t_idx: int, lat_idx: int, lon_idx: int) -> float:
        """Single-element read by integer index triple."""
        return float(self.values[t_idx, lat_idx, lon_idx])

    @classmethod
    def from_dataset(
        cls,
        ds: xr.Dataset,
        variable: str = "mld",
        time_name: str = "Time",
        lat_name: str = "Latitude",
        lon_name: str = "Longitude"
    ) -> "Grid":
        """
        Build a grid from an opened xarray Dataset.

        Datetime time coordinates are converted to epoch seconds; a
        descending latitude (or any descending) axis is flipped to ascending.

        Raises:
            GridError: if the variable or a coordinate is missing, or the
                variable is not 3-D over those coordinates
        """
        for key in (variable, time_name, lat_name, lon_name):
            if key not in ds.variables:
                raise GridError(f"Variable '{key}' not found in dataset. Found: {list(ds.variables)}")

        axes = [ds[time_name], ds[lat_name], ds[lon_name]]
        for coord in axes:
            if coord.ndim != 1:
                raise GridError(f"Coordinate '{coord.name}' must be one-dimensional")
        dims = [coord.dims[0] for coord in axes]

        try:
            da = ds[variable].transpose(*dims)
        except ValueError as e:
            raise GridError(f"Variable '{variable}' is not indexed by {dims}: {e}")

        values = np.asarray(da.values)
        arrays = [_axis_seconds(np.asarray(axes[0].values)),
                  np.asarray(axes[1].values, dtype=np.float64),
                  np.asarray(axes[2].values, dtype=np.float64)]

        # flip descending axes to ascending
        for dim, axis in enumerate(arrays):
            if axis.size > 1 and axis[0] > axis[-1]:
                arrays[dim] = axis[::-1]
                values = np.flip(values, axis=dim)

        logging.debug("Loaded grid '%s' with shape %s", variable, values.shape)
        return cls(time=arrays[0], lat=arrays[1], lon=arrays[2],
                   values=np.ascontiguousarray(values), name=variable)


class FieldSampler:
    """
    Nearest-neighbour sampler over a Grid.

    Safe to share between workers: no state changes after construction.
    """

    def __init__(
        self,
        grid: Grid,
        normalize_lon: bool = False,
        lon_convention: str = "180"
    ):
        """
        Args:
            grid: Backing grid
            normalize_lon: Wrap query longitudes before lookup
            lon_convention: "180" for [-180, 180), "360" for [0, 360)
        """
        if lon_convention not in LON_CONVENTIONS:
            raise InvalidParameterError(
                f"Unknown longitude convention '{lon_convention}', expected one of {LON_CONVENTIONS}"
            )
        self.grid = grid
        self.name = grid.name
        self.normalize_lon = normalize_lon
        self.lon_convention = lon_convention
        self.times = IndexLookup(grid.time, "time")
        self.lats = IndexLookup(grid.lat, "lat")
        self.lons = IndexLookup(grid.lon, "lon")
        logging.debug("FieldSampler '%s' ready (normalize_lon=%s, convention=%s)",
                      self.name, normalize_lon, lon_convention)

    @classmethod
    def from_dataset(
        cls,
        ds: xr.Dataset,
        variable: str = "mld",
        time_name: str = "Time",
        lat_name: str = "Latitude",
        lon_name: str = "Longitude",
        normalize_lon: bool = False,
        lon_convention: str = "180"
    ) -> "FieldSampler":
        grid = Grid.from_dataset(ds, variable, time_name, lat_name, lon_name)
        return cls(grid, normalize_lon=normalize_lon, lon_convention=lon_convention)

    def get_value(self, t: TimeLike, x: float, y: float) -> float:
        """
        Get the stored value nearest to (t, lon=x, lat=y).

        Returns:
            The exact grid value, or NO_DATA if any coordinate is outside
            its axis
        """
        if self.normalize_lon:
            x = wrap_longitude(x, self.lon_convention)

        tm = self.times.lookup(time_to_seconds(t))
        i = self.lats.lookup(y)
        j = self.lons.lookup(x)

        if tm.bounds != Bounds.IN or i.bounds != Bounds.IN or j.bounds != Bounds.IN:
            return NO_DATA
        return self.grid.read(tm.index, i.index, j.index)

    def get_values(self, t, xs, ys) -> np.ndarray:
        """
        Vectorised ``get_value``.

        Args:
            t: Scalar time or array broadcastable against ``xs``
            xs: Longitudes
            ys: Latitudes

        Returns:
            Float array with NO_DATA where any coordinate is out of range
        """
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if np.ndim(t) == 0:
            ts = np.full(np.broadcast(xs, ys).shape, time_to_seconds(t))
        else:
            ts = _axis_seconds(np.asarray(t))
        ts, xs, ys = np.broadcast_arrays(ts, xs, ys)

        if self.normalize_lon:
            xs = wrap_longitude(xs, self.lon_convention)

        ti, tb = self.times.lookup_many(ts)
        yi, yb = self.lats.lookup_many(ys)
        xi, xb = self.lons.lookup_many(xs)

        out = np.array(self.grid.values[ti, yi, xi], dtype=np.float64)
        outside = (tb != 0) | (yb != 0) | (xb != 0)
        out[outside] = NO_DATA
        return out

    def sample(self, particle: Particle, t: TimeLike) -> float:
        """Sample at a particle's position and record it in its covariates."""
        value = self.get_value(t, particle.lon, particle.lat)
        particle.covariates[self.name] = value
        return value

    def covers(self, t: TimeLike, x: float, y: float) -> Optional[Bounds]:
        """
        Report which axis (if any) excludes the query.

        Returns:
            None when the query is inside the grid, otherwise the Bounds flag
            of the first out-of-range axis in (time, lat, lon) order
        """
        if self.normalize_lon:
            x = wrap_longitude(x, self.lon_convention)
        for lookup, v in ((self.times, time_to_seconds(t)), (self.lats, y), (self.lons, x)):
            result = lookup.lookup(v)
            if result.bounds != Bounds.IN:
                return result.bounds
        return None

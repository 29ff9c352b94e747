"""
Equirectangular (cylindrical equidistant) projection.

Maps geographic degrees to planar metres and back, for distance and area
computations such as release-site centroids.
"""

import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidParameterError

# WGS84 equatorial radius (m)
R_EARTH = 6378137.0

Coordinate = Union[Tuple[float, float], Tuple[float, float, float]]


class EquirectangularProjection:
    """
    Forward/inverse equirectangular projection.

    ``x = R * (lon - origin_lon) * cos(origin_lat)`` and ``y = R * lat``,
    with angles in radians. A third (depth) coordinate passes through.
    """

    def __init__(self, radius: float = R_EARTH, origin_lon: float = 0.0, origin_lat: float = 0.0):
        """
        Args:
            radius: Reference radius (meters)
            origin_lon: Central meridian (degrees)
            origin_lat: Standard parallel (degrees)
        """
        if not math.isfinite(radius) or radius <= 0:
            raise InvalidParameterError(f"Projection radius must be > 0, got {radius}")
        if not -90.0 < origin_lat < 90.0:
            raise InvalidParameterError(f"Origin latitude must be in (-90, 90), got {origin_lat}")
        self.radius = float(radius)
        self.origin_lon = float(origin_lon)
        self.origin_lat = float(origin_lat)
        self._lon0 = math.radians(origin_lon)
        self._cos_lat0 = math.cos(math.radians(origin_lat))

    def forward(self, lon: float, lat: float, depth: Optional[float] = None) -> Coordinate:
        """
        Project (lon, lat[, depth]) in degrees to (x, y[, z]) in meters.
        """
        x = self.radius * (math.radians(lon) - self._lon0) * self._cos_lat0
        y = self.radius * math.radians(lat)
        if depth is None:
            return x, y
        return x, y, depth

    def inverse(self, x: float, y: float, z: Optional[float] = None) -> Coordinate:
        """
        Unproject (x, y[, z]) in meters back to (lon, lat[, depth]) in degrees.
        """
        lon = math.degrees(self._lon0 + x / (self.radius * self._cos_lat0))
        lat = math.degrees(y / self.radius)
        if z is None:
            return lon, lat
        return lon, lat, z

    def forward_many(self, coords: Optional[Sequence[Sequence[float]]]) -> Optional[np.ndarray]:
        """
        Project an (N, 2) or (N, 3) array of lon/lat[/depth].

        Returns:
            Array of the same shape, or None if ``coords`` is None
        """
        if coords is None:
            return None
        a = _as_coords(coords)
        out = a.copy()
        out[:, 0] = self.radius * (np.radians(a[:, 0]) - self._lon0) * self._cos_lat0
        out[:, 1] = self.radius * np.radians(a[:, 1])
        return out

    def inverse_many(self, coords: Optional[Sequence[Sequence[float]]]) -> Optional[np.ndarray]:
        """
        Unproject an (N, 2) or (N, 3) array of x/y[/z].

        Returns:
            Array of the same shape, or None if ``coords`` is None
        """
        if coords is None:
            return None
        a = _as_coords(coords)
        out = a.copy()
        out[:, 0] = np.degrees(self._lon0 + a[:, 0] / (self.radius * self._cos_lat0))
        out[:, 1] = np.degrees(a[:, 1] / self.radius)
        return out

    def planar_distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Distance in meters between two lon/lat points on the projected plane."""
        ax, ay = self.forward(a[0], a[1])
        bx, by = self.forward(b[0], b[1])
        return math.hypot(bx - ax, by - ay)

    def polygon_centroid(self, ring: Sequence[Sequence[float]]) -> Tuple[float, float]:
        """
        Area-weighted centroid of a lon/lat polygon ring.

        The ring is projected, its planar centroid computed with the shoelace
        formula and projected back. Zero-area rings fall back to the mean of
        their vertices.

        Returns:
            (lon, lat) in degrees
        """
        xy = self.forward_many(np.asarray(ring, dtype=np.float64)[:, :2])
        if xy.shape[0] == 0:
            raise InvalidParameterError("Cannot take the centroid of an empty ring")
        if xy.shape[0] > 1 and np.allclose(xy[0], xy[-1]):
            xy = xy[:-1]

        x, y = xy[:, 0], xy[:, 1]
        x1, y1 = np.roll(x, -1), np.roll(y, -1)
        cross = x * y1 - x1 * y
        area = cross.sum() / 2.0
        if abs(area) < 1e-9:
            cx, cy = x.mean(), y.mean()
        else:
            cx = ((x + x1) * cross).sum() / (6.0 * area)
            cy = ((y + y1) * cross).sum() / (6.0 * area)
        return self.inverse(cx, cy)

    def __repr__(self) -> str:
        return (f"EquirectangularProjection(radius={self.radius}, "
                f"origin_lon={self.origin_lon}, origin_lat={self.origin_lat})")


def _as_coords(coords) -> np.ndarray:
    a = np.array(coords, dtype=np.float64)
    if a.ndim == 1:
        a = a.reshape(1, -1)
    if a.ndim != 2 or a.shape[1] not in (2, 3):
        raise InvalidParameterError(f"Coordinates must have shape (N, 2) or (N, 3), got {a.shape}")
    return a

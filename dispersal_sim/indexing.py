"""
Nearest-neighbour index lookup on a monotonic axis.
"""

import logging
from enum import IntEnum
from typing import NamedTuple, Sequence, Tuple

import numpy as np

from .errors import GridError, NonMonotonicSequenceError, TooFewPointsError


class Bounds(IntEnum):
    """Where a looked-up value falls relative to the axis range."""

    BELOW = -1
    IN = 0
    ABOVE = 1


class LookupResult(NamedTuple):
    index: int
    bounds: Bounds

    @property
    def in_bounds(self) -> bool:
        return self.bounds is Bounds.IN


def check_strictly_increasing(values: np.ndarray):
    """Raise NonMonotonicSequenceError at the first non-increasing step."""
    steps = np.diff(values)
    bad = np.flatnonzero(~(steps > 0))
    if bad.size:
        i = int(bad[0]) + 1
        raise NonMonotonicSequenceError(i, float(values[i - 1]), float(values[i]))


class IndexLookup:
    """
    Resolves a coordinate to the index of the nearest element of an axis.

    The axis must be one-dimensional, finite and strictly increasing. Values
    exactly halfway between two elements resolve to the upper one.
    """

    def __init__(self, axis: Sequence[float], name: str = "axis"):
        values = np.array(axis, dtype=np.float64)
        if values.ndim != 1:
            raise GridError(f"Axis '{name}' must be one-dimensional, got shape {values.shape}")
        if values.size < 1:
            raise TooFewPointsError(values.size, 1)
        if not np.all(np.isfinite(values)):
            raise GridError(f"Axis '{name}' contains non-finite values")
        check_strictly_increasing(values)

        self.name = name
        self.values = values
        self.values.setflags(write=False)
        logging.debug("Axis '%s': %d values in [%g, %g]", name, values.size, values[0], values[-1])

    def __len__(self) -> int:
        return self.values.size

    @property
    def first(self) -> float:
        return float(self.values[0])

    @property
    def last(self) -> float:
        return float(self.values[-1])

    def lookup(self, v: float) -> LookupResult:
        """
        Find the nearest axis index to ``v``.

        Returns:
            LookupResult with the clamped index and a Bounds flag: BELOW if
            ``v`` is less than the first element, ABOVE if greater than the
            last (or NaN), IN otherwise
        """
        axis = self.values
        if v < axis[0]:
            return LookupResult(0, Bounds.BELOW)
        if not v <= axis[-1]:
            return LookupResult(axis.size - 1, Bounds.ABOVE)

        i = int(np.searchsorted(axis, v, side="left"))
        if i == 0:
            return LookupResult(0, Bounds.IN)
        lo, hi = axis[i - 1], axis[i]
        if v - lo >= hi - v:
            return LookupResult(i, Bounds.IN)
        return LookupResult(i - 1, Bounds.IN)

    def lookup_many(self, values: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorised ``lookup``.

        Returns:
            Tuple of (indices, bounds) integer arrays; bounds holds Bounds
            values (-1, 0, 1)
        """
        axis = self.values
        v = np.asarray(values, dtype=np.float64)
        n = axis.size

        i = np.searchsorted(axis, v, side="left")
        if n > 1:
            i = np.clip(i, 1, n - 1)
            idx = np.where(v - axis[i - 1] >= axis[i] - v, i, i - 1)
        else:
            idx = np.zeros_like(i)

        bounds = np.full(v.shape, int(Bounds.IN), dtype=np.int8)
        below = v < axis[0]
        above = ~(v <= axis[-1]) & ~below
        bounds[below] = int(Bounds.BELOW)
        bounds[above] = int(Bounds.ABOVE)
        idx = np.where(below, 0, np.where(above, n - 1, idx))
        return idx.astype(np.intp), bounds

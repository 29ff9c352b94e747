"""
Natural cubic spline interpolation.

Used to build continuous functions from sparse knot sequences, e.g. to
resample a coarse time series onto the simulation clock.

The algorithm is the free-boundary spline of Burden & Faires, *Numerical
Analysis* (4th ed., 1989), pp. 126-131: one cubic per interval, continuous
through the second derivative at interior knots, with zero second derivative
at both ends.
"""

import logging
from typing import Sequence, Union

import numpy as np

from .errors import DimensionMismatchError, OutOfDomainError, TooFewPointsError
from .indexing import check_strictly_increasing

ArrayLike = Union[float, Sequence[float], np.ndarray]


class SplineFunction:
    """
    Piecewise cubic polynomial over strictly increasing knots.

    Interval ``i`` covers ``[knots[i], knots[i + 1])`` (the last interval is
    closed on the right) and is evaluated at ``x - knots[i]`` with
    ``coefficients[i] = (constant, linear, quadratic, cubic)``.
    """

    def __init__(self, knots: np.ndarray, coefficients: np.ndarray):
        knots = np.array(knots, dtype=np.float64)
        coefficients = np.array(coefficients, dtype=np.float64)
        if coefficients.ndim != 2 or coefficients.shape[1] != 4:
            raise DimensionMismatchError(coefficients.shape[-1], 4)
        if coefficients.shape[0] != knots.size - 1:
            raise DimensionMismatchError(coefficients.shape[0], knots.size - 1)
        check_strictly_increasing(knots)
        knots.setflags(write=False)
        coefficients.setflags(write=False)
        self._knots = knots
        self._coefficients = coefficients

    @property
    def knots(self) -> np.ndarray:
        return self._knots

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    @property
    def n(self) -> int:
        """Number of polynomial pieces."""
        return self._coefficients.shape[0]

    @property
    def domain(self):
        return float(self._knots[0]), float(self._knots[-1])

    def is_valid_point(self, x: float) -> bool:
        return bool(self._knots[0] <= x <= self._knots[-1])

    def evaluate(self, x: ArrayLike):
        """
        Evaluate the spline at ``x`` (scalar or array).

        Raises:
            OutOfDomainError: if any point lies outside the knot range
        """
        xs = np.asarray(x, dtype=np.float64)
        lower, upper = self.domain
        inside = (xs >= lower) & (xs <= upper)
        if not np.all(inside):
            bad = xs[~inside] if xs.ndim else xs
            raise OutOfDomainError(float(np.ravel(bad)[0]), lower, upper)

        i = np.searchsorted(self._knots, xs, side="right") - 1
        i = np.clip(i, 0, self.n - 1)
        dx = xs - self._knots[i]
        c = self._coefficients[i]
        y = c[..., 0] + dx * (c[..., 1] + dx * (c[..., 2] + dx * c[..., 3]))
        if y.ndim == 0:
            return float(y)
        return y

    __call__ = evaluate

    def derivative(self) -> "SplineFunction":
        """Spline of the first derivative (piecewise quadratic)."""
        c = self._coefficients
        d = np.zeros_like(c)
        d[:, 0] = c[:, 1]
        d[:, 1] = 2.0 * c[:, 2]
        d[:, 2] = 3.0 * c[:, 3]
        return SplineFunction(self._knots, d)

    def __repr__(self) -> str:
        lower, upper = self.domain
        return f"SplineFunction(n={self.n}, domain=[{lower}, {upper}])"


class SplineInterpolator:
    """Fits natural cubic splines."""

    min_points = 3

    def interpolate(self, x: Sequence[float], y: Sequence[float]) -> SplineFunction:
        """
        Compute a natural cubic spline through (x, y).

        ``y`` may be reduced precision (e.g. float32); the system is always
        solved in float64.

        Raises:
            DimensionMismatchError: if x and y have different lengths
            TooFewPointsError: if there are fewer than 3 points
            NonMonotonicSequenceError: if x is not strictly increasing
        """
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y).ravel().astype(np.float64)

        if x.size != y.size:
            raise DimensionMismatchError(x.size, y.size)
        if x.size < self.min_points:
            raise TooFewPointsError(x.size, self.min_points)
        check_strictly_increasing(x)

        # number of intervals; there are n + 1 knots
        n = x.size - 1
        h = np.diff(x)

        mu = np.zeros(n)
        z = np.zeros(n + 1)
        for i in range(1, n):
            g = 2.0 * (x[i + 1] - x[i - 1]) - h[i - 1] * mu[i - 1]
            mu[i] = h[i] / g
            z[i] = (3.0 * (y[i + 1] * h[i - 1] - y[i] * (x[i + 1] - x[i - 1]) + y[i - 1] * h[i])
                    / (h[i - 1] * h[i]) - h[i - 1] * z[i - 1]) / g

        # b is linear, c quadratic, d cubic; y are the constants
        b = np.zeros(n)
        c = np.zeros(n + 1)
        d = np.zeros(n)
        for j in range(n - 1, -1, -1):
            c[j] = z[j] - mu[j] * c[j + 1]
            b[j] = (y[j + 1] - y[j]) / h[j] - h[j] * (c[j + 1] + 2.0 * c[j]) / 3.0
            d[j] = (c[j + 1] - c[j]) / (3.0 * h[j])

        coefficients = np.column_stack((y[:-1], b, c[:-1], d))
        logging.debug("Fitted natural cubic spline with %d pieces on [%g, %g]", n, x[0], x[-1])
        return SplineFunction(x, coefficients)


def interpolate(x: Sequence[float], y: Sequence[float]) -> SplineFunction:
    """Shortcut for ``SplineInterpolator().interpolate(x, y)``."""
    return SplineInterpolator().interpolate(x, y)


def resample(x: Sequence[float], y: Sequence[float], new_x: ArrayLike) -> np.ndarray:
    """
    Fit a natural spline through (x, y) and evaluate it at ``new_x``.

    Raises:
        OutOfDomainError: if ``new_x`` extends beyond ``x``
    """
    return np.asarray(interpolate(x, y).evaluate(new_x))

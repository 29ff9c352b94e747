"""
Error types raised by the dispersal core.

Setup-time problems (bad grids, bad spline knots, bad model parameters)
raise a ``ConstructionError`` subclass. Sampling outside a grid is *not*
an error; see ``dispersal_sim.field.NO_DATA``.
"""


class ConstructionError(ValueError):
    """Invalid parameters supplied while building a model, grid or spline."""


class DimensionMismatchError(ConstructionError):
    """Two sequences that must have the same length do not."""

    def __init__(self, got: int, expected: int):
        self.got = got
        self.expected = expected
        super().__init__(f"Dimension mismatch: {got} != {expected}")


class TooFewPointsError(ConstructionError):
    """Not enough points to build the requested object."""

    def __init__(self, got: int, minimum: int):
        self.got = got
        self.minimum = minimum
        super().__init__(f"Number of points ({got}) is smaller than the minimum ({minimum})")


class NonMonotonicSequenceError(ConstructionError):
    """A sequence that must be strictly increasing is not."""

    def __init__(self, index: int, previous: float, current: float):
        self.index = index
        self.previous = previous
        self.current = current
        super().__init__(
            f"Points {index - 1} and {index} are not strictly increasing "
            f"({previous} >= {current})"
        )


class InvalidParameterError(ConstructionError):
    """A model or configuration parameter is out of its valid range."""


class GridError(ConstructionError):
    """The backing grid is missing an axis/variable or is malformed."""


class OutOfDomainError(ValueError):
    """A spline was evaluated outside the range of its knots."""

    def __init__(self, x: float, lower: float, upper: float):
        self.x = x
        self.lower = lower
        self.upper = upper
        super().__init__(f"{x} is outside the spline domain [{lower}, {upper}]")

"""
Time-unit conversion.

The simulation clock and particle ages are kept in seconds. Model parameters
are often quoted in other units (e.g. a Weibull scale in days), so these
helpers convert between seconds and a named unit.
"""

from .errors import InvalidParameterError

# Seconds per unit; keys are lower-case, singular and plural both accepted
SECONDS_PER_UNIT = {
    "millisecond": 1e-3,
    "second": 1.0,
    "minute": 60.0,
    "hour": 3600.0,
    "day": 86400.0,
    "week": 604800.0,
    "year": 365.0 * 86400.0,
}

_ALIASES = {
    "ms": "millisecond",
    "millis": "millisecond",
    "s": "second",
    "sec": "second",
    "min": "minute",
    "h": "hour",
    "hr": "hour",
    "d": "day",
    "yr": "year",
}


def unit_seconds(units: str) -> float:
    """
    Return the number of seconds in one of ``units``.

    Args:
        units: Unit name, case-insensitive ("Days", "hours", "s", ...)

    Raises:
        InvalidParameterError: if the unit is not recognised
    """
    key = str(units).strip().lower()
    key = _ALIASES.get(key, key)
    if key not in SECONDS_PER_UNIT and key.endswith("s"):
        key = key[:-1]
    if key not in SECONDS_PER_UNIT:
        raise InvalidParameterError(
            f"Unknown time unit '{units}'. Expected one of {sorted(SECONDS_PER_UNIT)}"
        )
    return SECONDS_PER_UNIT[key]


def from_seconds(seconds: float, units: str) -> float:
    """Convert a duration in seconds into ``units``."""
    return seconds / unit_seconds(units)


def to_seconds(value: float, units: str) -> float:
    """Convert a duration in ``units`` into seconds."""
    return value * unit_seconds(units)

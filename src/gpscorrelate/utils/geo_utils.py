"""
Geographic and numeric helpers for GPS data.
Distance for track statistics, linear blending for interpolation, and the
decimal/rational conversions that keep EXIF output no more precise than the
source track.
"""

import re
from typing import Sequence, Tuple

import numpy as np


# Earth radius in meters
EARTH_RADIUS_M = 6371000.0

# EXIF rationals are 32-bit; these caps keep numerators in range
MAX_RATIONAL_DIGITS = 9
MAX_SECONDS_DECIMALS = 7

Rational = Tuple[int, int]

_DECIMALS_PATTERN = re.compile(r"\.(\d*)")


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two GPS points using Haversine formula.

    Args:
        lat1: Latitude of first point (degrees)
        lon1: Longitude of first point (degrees)
        lat2: Latitude of second point (degrees)
        lon2: Longitude of second point (degrees)

    Returns:
        Distance in meters
    """
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = np.radians(lat2 - lat1)
    dlambda = np.radians(lon2 - lon1)

    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(EARTH_RADIUS_M * c)


def interpolate_value(start: float, end: float, scale: float) -> float:
    """
    Blend two values linearly; scale 0 gives start, 1 gives end.

    No clamping is applied, callers pass scales inside their bracket.
    """
    return start + (end - start) * scale


def count_decimals(text: str) -> int:
    """
    Count the digits after the decimal point in a number as written.

    Args:
        text: Number as it appeared in the source file

    Returns:
        Number of significant decimal places (0 if there is no point)
    """
    match = _DECIMALS_PATTERN.search(text)
    return len(match.group(1)) if match else 0


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def to_rational(number: float, decimals: int) -> Rational:
    """
    Express a non-negative number as a rational with a power-of-ten denominator.

    The denominator carries as many decimals as the source had, capped so the
    numerator stays within nine digits.

    Args:
        number: Non-negative value
        decimals: Significant decimals of the source data

    Returns:
        (numerator, denominator)
    """
    int_digits = int(np.ceil(np.log10(number + 1.0)))
    multiplier = 10 ** max(0, min(decimals, MAX_RATIONAL_DIGITS - int_digits))
    return _round_half_up(number * multiplier), multiplier


def to_dms_rationals(number: float, decimals: int) -> Tuple[Rational, Rational, Rational]:
    """
    Split a coordinate into degrees, minutes and decimal seconds rationals.

    Splitting off minutes and whole seconds uses up about 3.6 significant
    figures, so the seconds keep ``decimals - 3`` places (at most 7).

    Args:
        number: Latitude or longitude; the sign is dropped
        decimals: Significant decimals of the source data

    Returns:
        ((deg, 1), (min, 1), (sec, denominator))
    """
    value = abs(number)
    degrees = int(np.floor(value))
    minutes_full = (value - np.floor(value)) * 60
    minutes = int(np.floor(minutes_full))
    fraction = minutes_full - minutes

    multiplier = 10 ** max(0, min(decimals - 3, MAX_SECONDS_DECIMALS))
    seconds = _round_half_up(fraction * 60 * multiplier)

    return (degrees, 1), (minutes, 1), (seconds, multiplier)


def to_degmin_rationals(number: float) -> Tuple[Rational, Rational, Rational]:
    """
    Legacy ``DD MM.MM`` encoding: minutes in hundredths, zero seconds.

    Args:
        number: Latitude or longitude; the sign is dropped

    Returns:
        ((deg, 1), (min * 100, 100), (0, 1))
    """
    value = abs(number)
    degrees = int(np.floor(value))
    minutes = int(np.floor((value - np.floor(value)) * 6000))
    return (degrees, 1), (minutes, 100), (0, 1)


def rationals_to_degrees(values: Sequence[float], ref: str = "") -> float:
    """
    Convert degree/minute/second values back to signed decimal degrees.

    Args:
        values: Three numbers (degrees, minutes, seconds)
        ref: Hemisphere reference, ``S`` and ``W`` are negative

    Returns:
        Decimal degrees
    """
    degrees, minutes, seconds = (float(v) for v in values[:3])
    result = degrees + minutes / 60.0 + seconds / 3600.0
    if ref.strip().upper() in ("S", "W"):
        result = -result
    return result


def validate_gps_coordinates(lat: float, lon: float) -> bool:
    """
    Validate GPS coordinates are within valid ranges.

    Args:
        lat: Latitude
        lon: Longitude

    Returns:
        True if coordinates are valid
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180

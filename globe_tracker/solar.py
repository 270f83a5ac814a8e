"""
Sub-solar point calculator.

Maps an instant (Unix milliseconds, UTC) to the geographic coordinate directly
beneath the Sun. The ephemeris terms are the NOAA low-precision solar formulas,
good to a fraction of a degree, which is plenty for drawing a terminator.
"""
import math
from typing import NamedTuple

MS_PER_DAY = 86_400_000.0

# Unix epoch and J2000.0 as Julian dates
_JD_UNIX_EPOCH = 2440587.5
_JD_J2000 = 2451545.0


class GeographicCoordinate(NamedTuple):
    longitude: float  # degrees, [-180, 180)
    latitude: float   # degrees, [-90, 90]


def century(t_ms):
    """Julian centuries since J2000.0 for a Unix millisecond timestamp."""
    return (t_ms / MS_PER_DAY + _JD_UNIX_EPOCH - _JD_J2000) / 36525.0


def _mean_longitude(t):
    return (280.46646 + t * (36000.76983 + t * 0.0003032)) % 360.0


def _mean_anomaly(t):
    return 357.52911 + t * (35999.05029 - 0.0001537 * t)


def _eccentricity(t):
    return 0.016708634 - t * (0.000042037 + 0.0000001267 * t)


def _equation_of_center(t):
    m = math.radians(_mean_anomaly(t))
    return (math.sin(m) * (1.914602 - t * (0.004817 + 0.000014 * t))
            + math.sin(2 * m) * (0.019993 - 0.000101 * t)
            + math.sin(3 * m) * 0.000289)


def _apparent_longitude(t):
    true_longitude = _mean_longitude(t) + _equation_of_center(t)
    omega = math.radians(125.04 - 1934.136 * t)
    return true_longitude - 0.00569 - 0.00478 * math.sin(omega)


def _obliquity_correction(t):
    seconds = 21.448 - t * (46.8150 + t * (0.00059 - t * 0.001813))
    mean_obliquity = 23.0 + (26.0 + seconds / 60.0) / 60.0
    return mean_obliquity + 0.00256 * math.cos(math.radians(125.04 - 1934.136 * t))


def declination(t):
    """Solar declination in degrees for century value ``t``."""
    epsilon = math.radians(_obliquity_correction(t))
    lam = math.radians(_apparent_longitude(t))
    return math.degrees(math.asin(math.sin(epsilon) * math.sin(lam)))


def equation_of_time(t):
    """Equation of time in minutes for century value ``t``."""
    epsilon = math.radians(_obliquity_correction(t))
    l0 = math.radians(_mean_longitude(t))
    e = _eccentricity(t)
    m = math.radians(_mean_anomaly(t))
    y = math.tan(epsilon / 2) ** 2

    e_time = (y * math.sin(2 * l0)
              - 2 * e * math.sin(m)
              + 4 * e * y * math.sin(m) * math.cos(2 * l0)
              - 0.5 * y * y * math.sin(4 * l0)
              - 1.25 * e * e * math.sin(2 * m))
    return math.degrees(e_time) * 4.0


def day_start(t_ms):
    """Start of the UTC calendar day containing ``t_ms``, in Unix ms."""
    # floor modulo, so times before 1970 round down to their own midnight too
    return t_ms - (t_ms % MS_PER_DAY)


def wrap_longitude(lng):
    wrapped = (lng + 180.0) % 360.0 - 180.0
    # float modulo of a tiny negative number can round up to exactly 360
    if wrapped >= 180.0:
        wrapped -= 360.0
    return wrapped


def sun_position(t_ms) -> GeographicCoordinate:
    """Sub-solar point at ``t_ms``.

    At 00:00 UTC the mean Sun sits over the antimeridian and moves west by
    360 degrees per day; the equation of time shifts it from the mean position.
    """
    t = century(t_ms)
    longitude = (day_start(t_ms) - t_ms) / MS_PER_DAY * 360.0 - 180.0
    longitude -= equation_of_time(t) / 4.0
    return GeographicCoordinate(wrap_longitude(longitude), declination(t))

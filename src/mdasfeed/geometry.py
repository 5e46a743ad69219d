"""
Polar/Cartesian conversion for sweep rendering and target display.

Cartesian axes are east (x) and north (y), in meters.
"""

import math
from typing import Tuple

METERS_PER_NAUTICAL_MILE = 1852.0


def polar_to_cartesian(angle_degrees: float, range_meters: float) -> Tuple[float, float]:
    """
    Convert a sweep angle and range to planar coordinates.

    Args:
        angle_degrees: Sweep angle in degrees
        range_meters: Range in meters

    Returns:
        (x, y) in meters
    """
    angle_rad = angle_degrees * math.pi / 180
    x = range_meters * math.cos(angle_rad)
    y = range_meters * math.sin(angle_rad)
    return x, y


def bearing_from_cartesian(x: float, y: float) -> float:
    """
    Compass bearing of a planar position, in [0, 360).

    Arguments to atan2 are (x, y), not (y, x): y is the forward/north axis
    and bearing increases clockwise from it.
    """
    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def range_from_cartesian(x: float, y: float) -> float:
    """Distance from own ship in meters."""
    return math.hypot(x, y)


def meters_to_nautical_miles(meters: float) -> float:
    return meters / METERS_PER_NAUTICAL_MILE

"""
Great-circle helpers for flight positions.

All points are (longitude, latitude) in decimal degrees.
"""

import math

from skyatlas.models import Coordinate


def calculate_heading(start: Coordinate, end: Coordinate) -> float:
    """
    Initial great-circle bearing from ``start`` to ``end``.

    Degrees clockwise from true north, normalized into [0, 360).
    Identical points give 0.
    """
    lon1, lat1 = math.radians(start[0]), math.radians(start[1])
    lon2, lat2 = math.radians(end[0]), math.radians(end[1])
    delta_lon = lon2 - lon1

    y = math.sin(delta_lon) * math.cos(lat2)
    x = (
        math.cos(lat1) * math.sin(lat2) -
        math.sin(lat1) * math.cos(lat2) * math.cos(delta_lon)
    )

    heading = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # -0.0 and float rounding can land exactly on 360
    return 0.0 if heading >= 360.0 else heading


def interpolate_position(start: Coordinate, end: Coordinate, fraction: float) -> Coordinate:
    """
    Point ``fraction`` of the way from ``start`` to ``end``.

    Linear in lon/lat, which is what the map draws between route endpoints.
    """
    fraction = min(max(fraction, 0.0), 1.0)
    lon = start[0] + (end[0] - start[0]) * fraction
    lat = start[1] + (end[1] - start[1]) * fraction
    return (lon, lat)

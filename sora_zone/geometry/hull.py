"""
Convex Hull Builder
===================

Graham scan over geographic points.

Axis convention: angles and cross products are taken in (lat, lng) order,
i.e. the polar angle is atan2(dlng, dlat) measured from the latitude axis.
The hull is counter-clockwise in that convention; the polygon offset builder
re-orients whatever it receives, so callers never depend on the winding.
"""

import math
from typing import List, Sequence

from sora_zone.geometry.points import GeoPoint


def _cross(a: GeoPoint, b: GeoPoint, p: GeoPoint) -> float:
    return (b.lat - a.lat) * (p.lng - b.lng) - (b.lng - a.lng) * (p.lat - b.lat)


def convex_hull(points: Sequence[GeoPoint]) -> List[GeoPoint]:
    """
    Reduce a point set to its convex hull.

    Args:
        points: Any point set (order irrelevant)

    Returns:
        Hull vertices, a subset of the input. Fewer than 3 input points are
        returned unchanged.
    """
    if len(points) < 3:
        return list(points)

    unique: List[GeoPoint] = []
    seen = set()
    for p in points:
        key = (p.lat, p.lng)
        if key not in seen:
            seen.add(key)
            unique.append(p)
    if len(unique) < 3:
        return unique

    pivot = min(unique, key=lambda p: (p.lat, p.lng))
    rest = [p for p in unique if p is not pivot]
    # Collinear with the pivot: nearer first, so the scan keeps the far one
    rest.sort(key=lambda p: (
        math.atan2(p.lng - pivot.lng, p.lat - pivot.lat),
        (p.lat - pivot.lat) ** 2 + (p.lng - pivot.lng) ** 2,
    ))

    hull: List[GeoPoint] = [pivot]
    for p in rest:
        while len(hull) >= 2 and _cross(hull[-2], hull[-1], p) <= 0:
            hull.pop()
        hull.append(p)
    return hull


def is_closed_route(points: Sequence[GeoPoint]) -> bool:
    """A route is closed when it has >= 3 points and ends where it starts."""
    return (
        len(points) >= 3
        and points[0].lat == points[-1].lat
        and points[0].lng == points[-1].lng
    )

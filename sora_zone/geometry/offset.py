"""
Polygon Offset Builder
======================

Grows a convex polygon outward by edge translation and re-intersection.

Design:
- Convex input only (hull first); the algorithm is unsound for concave rings
- Winding is normalized to CCW before offsetting
- MITER joins intersect consecutive offset lines (sharp corners)
- ROUND joins replace each corner by an arc of radius d (exact buffer)
"""

import math
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from sora_zone.geometry.errors import (
    DegenerateGeometryError,
    GeometryError,
    InvalidInputError,
    UnsupportedShapeError,
)
from sora_zone.geometry.points import GeoPoint
from sora_zone.geometry.projection import LocalFrame
from sora_mqtt.logging import LogEvent, create_logger

logger = create_logger("geometry")

_PARALLEL_EPS = 1e-10
_CONVEXITY_EPS = 1e-6


class JoinStyle(str, Enum):
    """Corner treatment of the polygon offset."""
    MITER = "miter"
    ROUND = "round"


def signed_area(xy: np.ndarray) -> float:
    """Shoelace area, positive for counter-clockwise rings."""
    x, y = xy[:, 0], xy[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def _intersect_lines(
    a1: np.ndarray, a2: np.ndarray, b1: np.ndarray, b2: np.ndarray
) -> Optional[np.ndarray]:
    """Intersection of the infinite lines a1-a2 and b1-b2, None if parallel."""
    (x1, y1), (x2, y2), (x3, y3), (x4, y4) = a1, a2, b1, b2
    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < _PARALLEL_EPS:
        return None
    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    return np.array([x1 + t * (x2 - x1), y1 + t * (y2 - y1)])


def _offset_edges(
    xy: np.ndarray, distance_m: float
) -> List[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
    """(start, end, outward normal) of every non-degenerate edge moved out by d."""
    edges = []
    n = len(xy)
    for i in range(n):
        p, q = xy[i], xy[(i + 1) % n]
        dx, dy = q - p
        length = math.hypot(dx, dy)
        if length == 0:
            continue
        normal = np.array([dy / length, -dx / length])
        edges.append((p + normal * distance_m, q + normal * distance_m, normal))
    return edges


def _check_convex(xy: np.ndarray) -> None:
    n = len(xy)
    scale = max(float(np.ptp(xy, axis=0).max()), 1.0)
    for i in range(n):
        a, b, c = xy[i - 1], xy[i], xy[(i + 1) % n]
        cross = (b[0] - a[0]) * (c[1] - b[1]) - (b[1] - a[1]) * (c[0] - b[0])
        if cross < -_CONVEXITY_EPS * scale * scale:
            raise UnsupportedShapeError(
                f"Polygon offset requires a convex ring (reflex vertex {i})"
            )


def _round_corner(
    corner: np.ndarray, n_in: np.ndarray, n_out: np.ndarray, distance_m: float, segments: int
) -> List[np.ndarray]:
    a0 = math.atan2(n_in[1], n_in[0])
    a1 = math.atan2(n_out[1], n_out[0])
    sweep = (a1 - a0) % (2 * math.pi)
    if sweep < 1e-9 or sweep > math.pi:
        # Collinear vertex (a convex ring never turns by more than pi)
        return [corner + n_in * distance_m]
    count = max(1, int(math.ceil(segments * sweep / math.pi)))
    return [
        corner + distance_m * np.array([math.cos(a0 + sweep * k / count), math.sin(a0 + sweep * k / count)])
        for k in range(count + 1)
    ]


def offset_convex_polygon(
    hull: Sequence[GeoPoint],
    distance_m: float,
    join: JoinStyle = JoinStyle.MITER,
    arc_segments: int = 16,
) -> List[GeoPoint]:
    """
    Strict convex polygon offset.

    Args:
        hull: Convex ring of at least 3 points, either winding
        distance_m: Outward distance in meters (> 0)
        join: Corner treatment
        arc_segments: Points per half turn for ROUND joins

    Returns:
        Offset ring, counter-clockwise (x east / y north)

    Raises:
        InvalidInputError: Fewer than 3 points, bad distance or non-finite input
        UnsupportedShapeError: Ring is not convex
        DegenerateGeometryError: Fewer than 3 vertices could be built
    """
    if len(hull) < 3:
        raise InvalidInputError(f"Polygon offset needs >= 3 points, got {len(hull)}")
    if not math.isfinite(distance_m) or distance_m <= 0:
        raise InvalidInputError(f"Offset distance must be > 0, got {distance_m}")

    frame = LocalFrame.fit(hull, reference=hull[0])
    xy = frame.project(hull)
    if signed_area(xy) < 0:
        xy = xy[::-1]
    _check_convex(xy)

    edges = _offset_edges(xy, distance_m)
    result: List[np.ndarray] = []
    for i, (s1, e1, n1) in enumerate(edges):
        s2, e2, n2 = edges[(i + 1) % len(edges)]
        if join == JoinStyle.ROUND:
            corner = e1 - n1 * distance_m
            result.extend(_round_corner(corner, n1, n2, distance_m, arc_segments))
            continue
        vertex = _intersect_lines(s1, e1, s2, e2)
        if vertex is not None:
            result.append(vertex)

    if len(result) < 3:
        raise DegenerateGeometryError(
            f"Polygon offset produced {len(result)} vertices"
        )
    return frame.unproject(np.array(result))


def buffer_polygon(
    hull: Sequence[GeoPoint],
    distance_m: float,
    join: JoinStyle = JoinStyle.MITER,
) -> List[GeoPoint]:
    """
    Fail-soft convex polygon offset.

    Returns `hull` unchanged when distance <= 0, fewer than 3 points are
    given, or the offset cannot be built.
    """
    if distance_m <= 0 or len(hull) < 3:
        return list(hull)
    try:
        return offset_convex_polygon(hull, distance_m, join=join)
    except GeometryError as e:
        logger.warning(
            event=LogEvent.GEOMETRY_FALLBACK,
            message="Polygon offset failed, returning hull unchanged",
            metadata={'points': len(hull), 'distance_m': distance_m},
            exc_info=e,
        )
        return list(hull)

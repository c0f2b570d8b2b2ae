"""
Corridor Buffer Builder
=======================

Rounded corridor polygon around an open polyline.

Ring layout (counter-clockwise, x east / y north):

    right side  0 -> n   (offset against the left normal)
    end cap     semicircle around the last vertex
    left side   n -> 0
    start cap   semicircle around the first vertex

Known limitation: interior miters are clamped at 3 x distance, so very sharp
consecutive turns (below ~20 degrees) can self-intersect.
"""

import math
from typing import List, Sequence

import numpy as np

from sora_zone.geometry.errors import InvalidInputError
from sora_zone.geometry.points import GeoPoint, all_finite
from sora_zone.geometry.projection import LocalFrame
from sora_mqtt.logging import LogEvent, create_logger

logger = create_logger("geometry")

DEFAULT_CAP_SEGMENTS = 16
MITER_LIMIT = 3.0
_MIN_SEGMENT_M = 1e-9


def _segment_normals(xy: np.ndarray) -> np.ndarray:
    """Unit left normals (-dy, dx) per segment; degenerate segments reuse the previous one."""
    normals = np.zeros((len(xy) - 1, 2))
    previous = np.array([0.0, 1.0])
    for i in range(len(xy) - 1):
        dx, dy = xy[i + 1] - xy[i]
        length = math.hypot(dx, dy)
        if length > _MIN_SEGMENT_M:
            previous = np.array([-dy / length, dx / length])
        normals[i] = previous
    return normals


def _vertex_offsets(normals: np.ndarray, distance_m: float) -> np.ndarray:
    """Offset vector (towards the left side) for every vertex."""
    n_vertices = len(normals) + 1
    offsets = np.zeros((n_vertices, 2))
    offsets[0] = normals[0] * distance_m
    offsets[-1] = normals[-1] * distance_m

    for i in range(1, n_vertices - 1):
        n1, n2 = normals[i - 1], normals[i]
        bisector = n1 + n2
        norm = math.hypot(*bisector)
        if norm < 1e-12:
            # Full reversal: no bisector exists
            offsets[i] = n1 * distance_m
            continue
        dot = float(np.dot(n1, n2))
        cos_half = math.sqrt(max((dot + 1.0) / 2.0, 0.0))
        scale = min(distance_m / cos_half, MITER_LIMIT * distance_m)
        offsets[i] = bisector / norm * scale
    return offsets


def _arc(
    center: np.ndarray,
    start: np.ndarray,
    end: np.ndarray,
    radius: float,
    cap_segments: int,
) -> List[np.ndarray]:
    """Interior points of the CCW arc from `start` to `end` around `center`."""
    a0 = math.atan2(start[1] - center[1], start[0] - center[0])
    a1 = math.atan2(end[1] - center[1], end[0] - center[0])
    sweep = (a1 - a0) % (2 * math.pi)
    count = max(2, int(round(cap_segments * sweep / math.pi)))
    step = sweep / (count + 1)
    return [
        center + radius * np.array([math.cos(a0 + step * k), math.sin(a0 + step * k)])
        for k in range(1, count + 1)
    ]


def _circle(distance_m: float, cap_segments: int) -> np.ndarray:
    n = 2 * cap_segments
    angles = np.arange(n) * (2 * math.pi / n)
    return np.column_stack([np.cos(angles), np.sin(angles)]) * distance_m


def corridor_polygon(
    points: Sequence[GeoPoint],
    distance_m: float,
    cap_segments: int = DEFAULT_CAP_SEGMENTS,
) -> List[GeoPoint]:
    """
    Strict corridor buffer.

    Args:
        points: Open polyline, at least one point
        distance_m: Perpendicular distance in meters (> 0)
        cap_segments: Points per semicircle of end cap (>= 2)

    Returns:
        Closed ring (last point does not repeat the first)

    Raises:
        InvalidInputError: Empty input, non-finite coordinates or
            non-positive distance
        ValueError: cap_segments below 2
    """
    if not points:
        raise InvalidInputError("Corridor buffer needs at least one point")
    if not all_finite(points):
        raise InvalidInputError("Non-finite coordinate in polyline")
    if not math.isfinite(distance_m) or distance_m <= 0:
        raise InvalidInputError(f"Corridor distance must be > 0, got {distance_m}")
    if cap_segments < 2:
        raise ValueError(f"cap_segments must be >= 2, got {cap_segments}")

    frame = LocalFrame.fit(points, reference=points[0])
    xy = frame.project(points)

    if len(points) == 1:
        return frame.unproject(xy[0] + _circle(distance_m, cap_segments))

    offsets = _vertex_offsets(_segment_normals(xy), distance_m)
    right = xy - offsets
    left = xy + offsets

    ring: List[np.ndarray] = list(right)
    ring.extend(_arc(xy[-1], right[-1], left[-1], distance_m, cap_segments))
    ring.extend(left[::-1])
    ring.extend(_arc(xy[0], left[0], right[0], distance_m, cap_segments))
    return frame.unproject(np.array(ring))


def buffer_polyline(
    points: Sequence[GeoPoint],
    distance_m: float,
    cap_segments: int = DEFAULT_CAP_SEGMENTS,
) -> List[GeoPoint]:
    """
    Fail-soft corridor buffer.

    Returns `points` unchanged when distance <= 0, the input is empty, or
    the buffer cannot be built (non-finite coordinates).
    """
    if distance_m <= 0 or not points:
        return list(points)
    try:
        return corridor_polygon(points, distance_m, cap_segments)
    except InvalidInputError as e:
        logger.warning(
            event=LogEvent.GEOMETRY_FALLBACK,
            message="Corridor buffer failed, returning input unchanged",
            metadata={'points': len(points), 'distance_m': distance_m},
            exc_info=e,
        )
        return list(points)

"""
Coordinate Projector
====================

Local equirectangular projection between degrees and meters.

Design:
- One meter scale per frame, taken from the average latitude of the
  point set so distortion is spread across the whole route
- Accurate for aviation-scale routes only (a few km); no geodesics
- Vectorized with numpy, frames are immutable
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from sora_zone.geometry.errors import InvalidInputError
from sora_zone.geometry.points import GeoPoint, PlanarPoint, all_finite

METERS_PER_DEGREE = 111320.0


@dataclass(frozen=True)
class LocalFrame:
    """
    Tangent plane anchored at a reference point.

    Attributes:
        reference: Origin of the plane (x = y = 0)
        scale_latitude: Latitude (degrees) used for the longitude scale
    """

    reference: GeoPoint
    scale_latitude: float

    def __post_init__(self):
        if not self.reference.is_finite or not math.isfinite(self.scale_latitude):
            raise InvalidInputError("Projection frame requires finite coordinates")
        if math.cos(math.radians(self.scale_latitude)) < 1e-9:
            raise InvalidInputError(
                f"Local projection undefined at latitude {self.scale_latitude}"
            )

    @classmethod
    def fit(
        cls,
        points: Sequence[GeoPoint],
        reference: Optional[GeoPoint] = None,
    ) -> 'LocalFrame':
        """
        Build a frame for a point set.

        Args:
            points: Points that will be projected (at least one)
            reference: Origin (default: first point)

        Raises:
            InvalidInputError: Empty or non-finite input
        """
        if not points:
            raise InvalidInputError("Cannot fit a projection frame to no points")
        if not all_finite(points):
            raise InvalidInputError("Non-finite coordinate in projection input")
        avg_lat = sum(p.lat for p in points) / len(points)
        return cls(reference=reference or points[0], scale_latitude=avg_lat)

    @property
    def lat_scale(self) -> float:
        return METERS_PER_DEGREE

    @property
    def lng_scale(self) -> float:
        return METERS_PER_DEGREE * math.cos(math.radians(self.scale_latitude))

    def project(self, points: Sequence[GeoPoint]) -> np.ndarray:
        """Project to an (N, 2) float array of (x, y) meters."""
        if not all_finite(points):
            raise InvalidInputError("Non-finite coordinate in projection input")
        if not points:
            return np.zeros((0, 2), dtype=float)
        coords = np.array([(p.lng, p.lat) for p in points], dtype=float)
        origin = np.array([self.reference.lng, self.reference.lat])
        return (coords - origin) * np.array([self.lng_scale, self.lat_scale])

    def unproject(self, xy: np.ndarray) -> List[GeoPoint]:
        """Inverse of project() for an (N, 2) array."""
        xy = np.asarray(xy, dtype=float).reshape(-1, 2)
        lngs = self.reference.lng + xy[:, 0] / self.lng_scale
        lats = self.reference.lat + xy[:, 1] / self.lat_scale
        return [GeoPoint(lat=float(lat), lng=float(lng)) for lat, lng in zip(lats, lngs)]


def project(points: Sequence[GeoPoint], reference: GeoPoint) -> List[PlanarPoint]:
    """
    Project points onto the plane anchored at `reference`.

    The longitude scale comes from the average latitude of `points` and is
    recorded on every returned PlanarPoint.

    Raises:
        InvalidInputError: Non-finite input
    """
    frame = LocalFrame.fit(points, reference=reference)
    return [
        PlanarPoint(x=float(x), y=float(y), scale_latitude=frame.scale_latitude)
        for x, y in frame.project(points)
    ]


def unproject(
    point: PlanarPoint,
    reference: GeoPoint,
    scale_latitude: Optional[float] = None,
) -> GeoPoint:
    """
    Map a planar point back to degrees.

    The longitude scale comes from `scale_latitude`, else the point's own
    frame, else the reference latitude.
    """
    lat0 = scale_latitude
    if lat0 is None:
        lat0 = point.scale_latitude if point.scale_latitude is not None else reference.lat
    frame = LocalFrame(reference=reference, scale_latitude=lat0)
    return frame.unproject(np.array([[point.x, point.y]]))[0]

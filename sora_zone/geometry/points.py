"""
Point Types
===========

Immutable geographic and planar points.

Design:
- Frozen dataclasses (hashable, thread-safe reads)
- to_dict()/from_dict() use the {lat, lng} shape stored by the dashboard
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class GeoPoint:
    """
    Geographic point in degrees (WGS84, no datum transform).

    Attributes:
        lat: Latitude in degrees
        lng: Longitude in degrees
    """

    lat: float
    lng: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)

    @property
    def is_null_island(self) -> bool:
        """True for the (0, 0) placeholder written by unset map pickers."""
        return self.lat == 0 and self.lng == 0

    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.lat, 'lng': self.lng}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeoPoint':
        """Deserialize from {lat, lng} (also accepts lon/longitude keys).

        Raises:
            ValueError: If keys are missing or values are not numbers
        """
        try:
            lng = data['lng'] if 'lng' in data else data.get('lon', data.get('longitude'))
            lat = data['lat'] if 'lat' in data else data['latitude']
            return cls(lat=float(lat), lng=float(lng))
        except KeyError as e:
            raise ValueError(f"Missing required GeoPoint field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid GeoPoint data: {e}")


@dataclass(frozen=True)
class PlanarPoint:
    """
    Point in meters on a local tangent plane (x east, y north).

    `scale_latitude` records the longitude scale of the frame it was
    projected in, so unproject() can invert it exactly.
    """

    x: float
    y: float
    scale_latitude: Optional[float] = None


def as_geo_points(points: Iterable[Any]) -> List[GeoPoint]:
    """Coerce GeoPoints, {lat, lng} dicts or (lat, lng) pairs to GeoPoints."""
    result = []
    for p in points:
        if isinstance(p, GeoPoint):
            result.append(p)
        elif isinstance(p, dict):
            result.append(GeoPoint.from_dict(p))
        else:
            lat, lng = p
            result.append(GeoPoint(lat=float(lat), lng=float(lng)))
    return result


def all_finite(points: Sequence[GeoPoint]) -> bool:
    return all(p.is_finite for p in points)

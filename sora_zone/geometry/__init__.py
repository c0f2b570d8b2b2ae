"""
Geometry Layer
==============

Bounded Context: Buffering engine for SORA safety zones.

Responsibilities:
- Local projection between degrees and meters
- Convex hull of a route
- Corridor buffer around an open polyline
- Offset of a convex polygon
- NO zone policy, NO rendering, NO I/O

Design Philosophy:
- Pure functions, no state across calls
- Immutable point types
- Strict builders raise GeometryError subclasses
- Fail-soft builders return their input unchanged
"""

from sora_zone.geometry.errors import (
    GeometryError,
    InvalidInputError,
    DegenerateGeometryError,
    UnsupportedShapeError,
)
from sora_zone.geometry.points import GeoPoint, PlanarPoint, as_geo_points
from sora_zone.geometry.projection import LocalFrame, project, unproject
from sora_zone.geometry.hull import convex_hull, is_closed_route
from sora_zone.geometry.corridor import buffer_polyline, corridor_polygon
from sora_zone.geometry.offset import (
    JoinStyle,
    buffer_polygon,
    offset_convex_polygon,
    signed_area,
)

__all__ = [
    # Errors
    "GeometryError",
    "InvalidInputError",
    "DegenerateGeometryError",
    "UnsupportedShapeError",
    # Points & projection
    "GeoPoint",
    "PlanarPoint",
    "as_geo_points",
    "LocalFrame",
    "project",
    "unproject",
    # Builders
    "convex_hull",
    "is_closed_route",
    "buffer_polyline",
    "corridor_polygon",
    "JoinStyle",
    "buffer_polygon",
    "offset_convex_polygon",
    "signed_area",
]

"""
SORA Zone Engine v1.0
=====================

Bounded Context: SORA safety zones around drone flight routes.

Design Philosophy:
- Separation of Concerns: Geometry, zone policy, rendering separated
- Pure geometry: no state across calls, immutable points
- Fail-soft at the edges: the composer never raises for bad geometry,
  it records the ring as skipped instead

Architecture:

    sora_zone/
    ├── geometry/          # Buffering engine (pure, stateless)
    │   ├── projection.py  # LocalFrame (degrees <-> meters)
    │   ├── hull.py        # convex_hull (Graham scan)
    │   ├── corridor.py    # buffer_polyline (corridor with round caps)
    │   └── offset.py      # buffer_polygon (convex offset, miter/round)
    │
    ├── zones.py           # ZoneSettings, Zone, ZoneComposition
    ├── composer.py        # compose_zones (FG, Contingency, GRB)
    ├── route.py           # KML / KMZ / WPML route import, KMZ export
    │
    └── rendering/         # Visualization
        ├── styles.py      # Zone palette
        └── renderer.py    # Renderer protocol, SnapshotRenderer

Usage:

    # 1. Route (list of {lat, lng}, GeoPoints, or an imported file)
    from sora_zone import load_route
    route = load_route("mission.kmz").coordinates

    # 2. Compose zones
    from sora_zone import ZoneSettings, compose_zones
    composition = compose_zones(
        route,
        ZoneSettings(flight_geography_m=10, contingency_m=50, ground_risk_m=100),
    )
    for zone in composition:          # outer to inner
        print(zone.label.display_name, zone.cumulative_distance_m)

    # 3. Render
    from sora_zone import SnapshotRenderer
    renderer = SnapshotRenderer()
    renderer.render(composition)
    renderer.save("snapshot.png")
"""

# Geometry Layer (pure, stateless)
from sora_zone.geometry import (
    GeoPoint,
    GeometryError,
    InvalidInputError,
    DegenerateGeometryError,
    UnsupportedShapeError,
    JoinStyle,
    LocalFrame,
    buffer_polygon,
    buffer_polyline,
    convex_hull,
)

# Zone policy
from sora_zone.zones import (
    BufferMode,
    Zone,
    ZoneComposition,
    ZoneLabel,
    ZoneSettings,
    ZoneSkip,
)
from sora_zone.composer import compose_zones

# Route import and export
from sora_zone.route import (
    Route,
    RouteImportError,
    export_kmz,
    load_route,
    parse_kml_string,
    sanitize_filename,
)

# Rendering Layer
from sora_zone.rendering import (
    DEFAULT_ZONE_STYLES,
    Renderer,
    SnapshotRenderer,
    ZoneStyle,
)

__all__ = [
    # Geometry
    "GeoPoint",
    "GeometryError",
    "InvalidInputError",
    "DegenerateGeometryError",
    "UnsupportedShapeError",
    "JoinStyle",
    "LocalFrame",
    "buffer_polygon",
    "buffer_polyline",
    "convex_hull",
    # Zones
    "BufferMode",
    "Zone",
    "ZoneComposition",
    "ZoneLabel",
    "ZoneSettings",
    "ZoneSkip",
    "compose_zones",
    # Routes
    "Route",
    "RouteImportError",
    "export_kmz",
    "load_route",
    "parse_kml_string",
    "sanitize_filename",
    # Rendering
    "ZoneStyle",
    "DEFAULT_ZONE_STYLES",
    "Renderer",
    "SnapshotRenderer",
]

__version__ = "1.0.0"

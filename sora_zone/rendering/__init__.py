"""
Rendering Layer
===============

Bounded Context: Mission map visualization.

Responsibilities:
- Zone palette (fill, stroke, dash)
- Renderer protocol: draw(zone, style)
- Raster snapshot of a mission (zones, route, markers, scale bar)

Non-responsibilities:
- Zone geometry (handled by geometry and composer)
- Map tiles (the snapshot uses a plain background)

Design:
- Uses supervision.draw.utils
- Zones painted in composition order
"""

from sora_zone.rendering.styles import DEFAULT_ZONE_STYLES, ROUTE_STYLE, ZoneStyle
from sora_zone.rendering.renderer import (
    Renderer,
    SnapshotRenderer,
    choose_zoom,
    dash_segments,
    lat_to_y,
    lng_to_x,
    meters_per_pixel,
    nice_number,
    paint_zones,
    scale_bar,
)

__all__ = [
    "ZoneStyle",
    "DEFAULT_ZONE_STYLES",
    "ROUTE_STYLE",
    "Renderer",
    "SnapshotRenderer",
    "paint_zones",
    "choose_zoom",
    "lng_to_x",
    "lat_to_y",
    "meters_per_pixel",
    "nice_number",
    "scale_bar",
    "dash_segments",
]

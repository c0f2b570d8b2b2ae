"""
Zone Composer
=============

Bounded Context: SORA zone policy.

Turns a route and ZoneSettings into the three nested rings:

    Flight Geography    max(fg, 1 m)
    Contingency Area    fg + contingency
    Ground Risk Buffer  fg + contingency + ground risk

Design:
- Each ring is built independently from the filtered route
- One branch decision (corridor vs convex hull), made once per call
- Fail-soft per ring: failures become ZoneSkip records, never exceptions
- Output in draw order (outer to inner) so renderers can paint in sequence
"""

from typing import Any, List, Optional, Sequence, Tuple

from sora_zone.geometry import (
    GeoPoint,
    GeometryError,
    InvalidInputError,
    as_geo_points,
    convex_hull,
    corridor_polygon,
    is_closed_route,
    offset_convex_polygon,
)
from sora_zone.zones import (
    BufferMode,
    Zone,
    ZoneComposition,
    ZoneLabel,
    ZoneSettings,
    ZoneSkip,
)
from sora_mqtt.logging import LogEvent, StructuredLogger, create_logger

# Smallest buffer drawn, so a zero-width ring still shows the flight path
MIN_VISIBLE_DISTANCE_M = 1.0

_default_logger = create_logger("composer")


def filter_route(route: Sequence[Any]) -> List[GeoPoint]:
    """Drop non-finite points and the (0, 0) placeholder, keeping order."""
    return [p for p in as_geo_points(route) if p.is_finite and not p.is_null_island]


def resolve_mode(route: Sequence[GeoPoint], settings: ZoneSettings) -> BufferMode:
    """Explicit mode wins; otherwise closed routes are buffered as an area."""
    if settings.mode is not None:
        return settings.mode
    return BufferMode.CONVEX_HULL if is_closed_route(route) else BufferMode.CORRIDOR


def make_buffer(
    route: Sequence[GeoPoint],
    distance_m: float,
    mode: BufferMode,
    settings: ZoneSettings,
    logger: Optional[StructuredLogger] = None,
) -> List[GeoPoint]:
    """
    Build one ring around the route.

    Raises:
        GeometryError: If the ring cannot be built
    """
    if not route:
        raise InvalidInputError("Route has no usable points")

    if mode == BufferMode.CONVEX_HULL:
        hull = convex_hull(route)
        if len(hull) >= 3:
            return offset_convex_polygon(
                hull, distance_m, join=settings.hull_join, arc_segments=settings.cap_segments
            )
        # Collinear or single-point area: a corridor around the hull points
        (logger or _default_logger).warning(
            event=LogEvent.GEOMETRY_FALLBACK,
            message="Convex hull has fewer than 3 vertices, using corridor buffer",
            metadata={'hull_points': len(hull), 'distance_m': distance_m},
        )
        return corridor_polygon(hull, distance_m, settings.cap_segments)

    return corridor_polygon(route, distance_m, settings.cap_segments)


def _ring_plan(settings: ZoneSettings) -> List[Tuple[ZoneLabel, float, Optional[float], str]]:
    """(label, distance, height, description) inner to outer."""
    fg = settings.flight_geography_m
    contingency = fg + settings.contingency_m
    ground_risk = contingency + settings.ground_risk_m
    return [
        (
            ZoneLabel.FLIGHT_GEOGRAPHY,
            fg,
            settings.flight_altitude_m,
            f"Flight Geography: {fg:g} m, altitude {settings.flight_altitude_m:g} m",
        ),
        (
            ZoneLabel.CONTINGENCY,
            contingency,
            settings.flight_altitude_m + settings.contingency_height_m,
            f"Contingency Area: {settings.contingency_m:g} m",
        ),
        (
            ZoneLabel.GROUND_RISK_BUFFER,
            ground_risk,
            None,
            f"Ground Risk Buffer: {settings.ground_risk_m:g} m",
        ),
    ]


def compose_zones(
    route: Sequence[Any],
    settings: Optional[ZoneSettings] = None,
    logger: Optional[StructuredLogger] = None,
) -> ZoneComposition:
    """
    Compute the SORA rings for a route.

    Args:
        route: GeoPoints, {lat, lng} dicts or (lat, lng) pairs
        settings: Distances and options (default: ZoneSettings())
        logger: Structured logger (default: "composer" component logger)

    Returns:
        ZoneComposition with zones ordered Ground Risk Buffer, Contingency,
        Flight Geography, and a skip record for every ring not produced.

    Example:
        >>> composition = compose_zones(
        ...     [(59.90, 10.70), (59.91, 10.72)],
        ...     ZoneSettings(contingency_m=50, ground_risk_m=100),
        ... )
        >>> [z.label.value for z in composition]
        ['ground_risk_buffer', 'contingency', 'flight_geography']
    """
    settings = settings or ZoneSettings()
    log = logger or _default_logger

    if not settings.enabled:
        return ZoneComposition(mode=settings.mode)

    raw = as_geo_points(route)
    points = filter_route(raw)
    if len(points) != len(raw):
        log.info(
            event=LogEvent.ROUTE_FILTERED,
            message="Dropped unusable route points",
            metadata={'input_points': len(raw), 'kept_points': len(points)},
        )

    mode = resolve_mode(points, settings)
    zones: List[Zone] = []
    skipped: List[ZoneSkip] = []

    for label, nominal, height, description in _ring_plan(settings):
        distance = max(nominal, MIN_VISIBLE_DISTANCE_M)
        try:
            polygon = make_buffer(points, distance, mode, settings, log)
        except GeometryError as e:
            skipped.append(ZoneSkip(label=label, cumulative_distance_m=distance, error=e))
            log.warning(
                event=LogEvent.ZONE_SKIPPED,
                message=f"{label.display_name} skipped",
                metadata={'label': label.value, 'distance_m': distance, 'mode': mode.value},
                exc_info=e,
            )
            continue

        zones.append(Zone(
            label=label,
            polygon=tuple(polygon),
            cumulative_distance_m=distance,
            mode=mode,
            height_m=height,
            description=description,
        ))
        log.info(
            event=LogEvent.ZONE_COMPOSED,
            message=f"{label.display_name} composed",
            metadata={'label': label.value, 'distance_m': distance, 'vertices': len(polygon)},
        )

    zones.reverse()
    return ZoneComposition(
        zones=tuple(zones),
        skipped=tuple(skipped),
        mode=mode,
        route=tuple(points),
    )

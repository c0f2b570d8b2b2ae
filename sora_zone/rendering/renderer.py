"""
Snapshot Renderer
=================

Draws a mission (SORA rings, route, markers, scale bar) onto a raster image
in Web Mercator pixel space.

Design:
- Renderer protocol: anything with draw(zone, style) can paint a composition
- Zones are painted in composition order (outer to inner), so inner rings
  sit on top
- View is fitted once per snapshot on the route and every ring
- Uses supervision drawing utilities; OpenCV for markers and PNG output

Dependencies:
- supervision (draw utilities, Color, Point)
- opencv (circles, imwrite)
- numpy (pixel arrays)
"""

import math
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple, Union

import cv2
import numpy as np
import supervision as sv

from sora_zone.geometry.points import GeoPoint, as_geo_points
from sora_zone.rendering.styles import (
    BACKGROUND_COLOR,
    DEFAULT_ZONE_STYLES,
    END_MARKER_COLOR,
    ROUTE_STYLE,
    START_MARKER_COLOR,
    WAYPOINT_COLOR,
    ZoneStyle,
)
from sora_zone.zones import Zone, ZoneComposition, ZoneLabel
from sora_mqtt.logging import LogEvent, StructuredLogger, create_logger

TILE_SIZE = 256
MAX_ZOOM = 16
MIN_ZOOM = 8
DEFAULT_ZOOM = 12
FIT_RATIO = 0.85
SCALE_BAR_TARGET_PX = 80
EQUATOR_METERS_PER_PIXEL = 156543.03392

WHITE = sv.Color(r=255, g=255, b=255)
BLACK = sv.Color(r=0, g=0, b=0)


class Renderer(Protocol):
    """Anything that can paint one zone with a style."""

    def draw(self, zone: Zone, style: ZoneStyle) -> None:
        ...


def paint_zones(
    renderer: Renderer,
    composition: Iterable[Zone],
    styles: Optional[Dict[ZoneLabel, ZoneStyle]] = None,
) -> int:
    """
    Paint every zone of a composition, in order.

    Returns:
        Number of zones painted
    """
    styles = styles or DEFAULT_ZONE_STYLES
    count = 0
    for zone in composition:
        renderer.draw(zone, styles[zone.label])
        count += 1
    return count


def lng_to_x(lng: float, zoom: int) -> float:
    """World pixel x of a longitude at a zoom level."""
    return (lng + 180.0) / 360.0 * (TILE_SIZE * 2 ** zoom)


def lat_to_y(lat: float, zoom: int) -> float:
    """World pixel y of a latitude at a zoom level (Web Mercator)."""
    s = math.sin(math.radians(lat))
    y = 0.5 - math.log((1 + s) / (1 - s)) / (4 * math.pi)
    return y * (TILE_SIZE * 2 ** zoom)


def choose_zoom(points: Sequence[GeoPoint], width: int, height: int) -> int:
    """
    Highest zoom (16 down to 8) at which the padded bounds fit the canvas.

    Bounds are padded by 20 % of their span (0.005 degrees for a zero span)
    and must fit within 85 % of the canvas.
    """
    if not points:
        return DEFAULT_ZOOM

    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    lat_pad = (max(lats) - min(lats)) * 0.2 or 0.005
    lng_pad = (max(lngs) - min(lngs)) * 0.2 or 0.005
    min_lat, max_lat = min(lats) - lat_pad, max(lats) + lat_pad
    min_lng, max_lng = min(lngs) - lng_pad, max(lngs) + lng_pad

    for zoom in range(MAX_ZOOM, MIN_ZOOM - 1, -1):
        span_x = lng_to_x(max_lng, zoom) - lng_to_x(min_lng, zoom)
        span_y = lat_to_y(min_lat, zoom) - lat_to_y(max_lat, zoom)
        if span_x <= width * FIT_RATIO and span_y <= height * FIT_RATIO:
            return zoom
    return MIN_ZOOM


def meters_per_pixel(lat: float, zoom: int) -> float:
    return EQUATOR_METERS_PER_PIXEL * math.cos(math.radians(lat)) / 2 ** zoom


def nice_number(value: float) -> float:
    """Round to 1, 2, 5 or 10 times a power of ten."""
    pow10 = 10 ** math.floor(math.log10(value))
    frac = value / pow10
    if frac < 1.5:
        return pow10
    if frac < 3.5:
        return 2 * pow10
    if frac < 7.5:
        return 5 * pow10
    return 10 * pow10


def scale_bar(lat: float, zoom: int, target_px: int = SCALE_BAR_TARGET_PX) -> Tuple[float, float, str]:
    """
    Scale bar for a view.

    Returns:
        (length in meters, length in pixels, label)

    Example:
        >>> meters, px, label = scale_bar(0.0, 12)
        >>> meters, label
        (2000, '2.0 km')
    """
    mpp = meters_per_pixel(lat, zoom)
    meters = nice_number(mpp * target_px)
    label = f"{meters / 1000:.1f} km" if meters >= 1000 else f"{round(meters)} m"
    return meters, meters / mpp, label


def dash_segments(
    path: np.ndarray, dash: Tuple[int, int]
) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
    """(start, end) of every visible dash along a pixel path."""
    on, off = dash
    period = on + off
    phase = 0.0
    for a, b in zip(path[:-1], path[1:]):
        length = float(np.hypot(*(b - a)))
        if length == 0:
            continue
        direction = (b - a) / length
        t = 0.0
        while t < length:
            if phase < on:
                step = min(on - phase, length - t)
                yield a + direction * t, a + direction * (t + step)
            else:
                step = min(period - phase, length - t)
            t += step
            phase = (phase + step) % period


class SnapshotRenderer:
    """
    Raster renderer of a mission map.

    Usage:
        renderer = SnapshotRenderer(width=800, height=400)
        frame = renderer.render(composition)
        renderer.save("snapshot.png")

    The view (zoom and origin) must be fitted before draw() is called;
    render() fits it on the route and all zones.
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 400,
        styles: Optional[Dict[ZoneLabel, ZoneStyle]] = None,
        background: str = BACKGROUND_COLOR,
        logger: Optional[StructuredLogger] = None,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.styles = styles or DEFAULT_ZONE_STYLES
        self.background = background
        self.logger = logger or create_logger("renderer")

        self.zoom: Optional[int] = None
        self.center: Optional[GeoPoint] = None
        self._origin = (0.0, 0.0)
        self.frame: Optional[np.ndarray] = None

    def fit(self, points: Sequence[GeoPoint]) -> int:
        """
        Fit the view on points and clear the canvas.

        Returns:
            Chosen zoom level

        Raises:
            ValueError: If no points are given
        """
        if not points:
            raise ValueError("Nothing to render: no route and no zones")

        self.zoom = choose_zoom(points, self.width, self.height)
        lats = [p.lat for p in points]
        lngs = [p.lng for p in points]
        self.center = GeoPoint(
            lat=(min(lats) + max(lats)) / 2,
            lng=(min(lngs) + max(lngs)) / 2,
        )
        self._origin = (
            lng_to_x(self.center.lng, self.zoom) - self.width / 2,
            lat_to_y(self.center.lat, self.zoom) - self.height / 2,
        )
        bgr = sv.Color.from_hex(self.background).as_bgr()
        self.frame = np.full((self.height, self.width, 3), bgr, dtype=np.uint8)
        return self.zoom

    def to_pixels(self, points: Sequence[GeoPoint]) -> np.ndarray:
        """Canvas pixel coordinates (float, shape (N, 2))."""
        if self.zoom is None:
            raise RuntimeError("Renderer view is not fitted")
        ox, oy = self._origin
        return np.array(
            [[lng_to_x(p.lng, self.zoom) - ox, lat_to_y(p.lat, self.zoom) - oy] for p in points],
            dtype=np.float64,
        ).reshape(-1, 2)

    def _stroke(self, path: np.ndarray, color: sv.Color, thickness: int, dash) -> None:
        pieces = zip(path[:-1], path[1:]) if dash is None else dash_segments(path, dash)
        for a, b in pieces:
            self.frame = sv.draw_line(
                scene=self.frame,
                start=sv.Point(x=a[0], y=a[1]),
                end=sv.Point(x=b[0], y=b[1]),
                color=color,
                thickness=thickness,
            )

    def draw(self, zone: Zone, style: Optional[ZoneStyle] = None) -> None:
        """Paint one ring: translucent fill, then (dashed) outline."""
        if zone.vertex_count < 3:
            return
        style = style or self.styles[zone.label]
        if self.frame is None:
            self.fit(zone.polygon)

        pixels = self.to_pixels(zone.polygon)
        if style.fill_opacity > 0:
            self.frame = sv.draw_filled_polygon(
                scene=self.frame,
                polygon=np.round(pixels).astype(np.int32),
                color=style.fill_color,
                opacity=style.fill_opacity,
            )
        if style.dash is None:
            self.frame = sv.draw_polygon(
                scene=self.frame,
                polygon=np.round(pixels).astype(np.int32),
                color=style.stroke_color,
                thickness=style.thickness,
            )
        else:
            closed = np.vstack([pixels, pixels[:1]])
            self._stroke(closed, style.stroke_color, style.thickness, style.dash)

    def draw_route(self, route: Sequence[GeoPoint], style: ZoneStyle = ROUTE_STYLE) -> None:
        """Route as a dashed polyline."""
        if len(route) < 2:
            return
        self._stroke(self.to_pixels(route), style.stroke_color, style.thickness, style.dash)

    def _marker(self, point: GeoPoint, color: str, radius: int, label: str, text_scale: float) -> None:
        x, y = np.round(self.to_pixels([point])[0]).astype(int)
        center = (int(x), int(y))
        cv2.circle(self.frame, center, radius, sv.Color.from_hex(color).as_bgr(), -1, cv2.LINE_AA)
        cv2.circle(self.frame, center, radius, WHITE.as_bgr(), 2 if radius > 5 else 1, cv2.LINE_AA)
        if label:
            self.frame = sv.draw_text(
                scene=self.frame,
                text=label,
                text_anchor=sv.Point(x=center[0], y=center[1]),
                text_color=WHITE,
                text_scale=text_scale,
                text_thickness=1,
                text_padding=0,
            )

    def draw_markers(self, route: Sequence[GeoPoint]) -> None:
        """Start "S", end "E" and numbered intermediate waypoints."""
        if not route:
            return
        self._marker(route[0], START_MARKER_COLOR, 7, "S", 0.3)
        if len(route) > 1:
            self._marker(route[-1], END_MARKER_COLOR, 7, "E", 0.3)
        for i in range(1, len(route) - 1):
            self._marker(route[i], WAYPOINT_COLOR, 5, str(i + 1), 0.25)

    def draw_scale_bar(self) -> str:
        """Scale bar in the bottom-left corner; returns its label."""
        _, bar_px, label = scale_bar(self.center.lat, self.zoom)
        x, y = 15, self.height - 15
        for start, end in (
            ((x, y), (x + bar_px, y)),
            ((x, y - 4), (x, y + 4)),
            ((x + bar_px, y - 4), (x + bar_px, y + 4)),
        ):
            self.frame = sv.draw_line(
                scene=self.frame,
                start=sv.Point(x=start[0], y=start[1]),
                end=sv.Point(x=end[0], y=end[1]),
                color=BLACK,
                thickness=2,
            )
        self.frame = sv.draw_text(
            scene=self.frame,
            text=label,
            text_anchor=sv.Point(x=x + bar_px / 2, y=y - 12),
            text_color=BLACK,
            text_scale=0.35,
            text_thickness=1,
            text_padding=0,
        )
        return label

    def render(
        self,
        composition: ZoneComposition,
        route: Optional[Sequence] = None,
    ) -> np.ndarray:
        """
        Full snapshot: zones (outer to inner), route, markers, scale bar.

        Args:
            composition: Zones to paint
            route: Route to draw (default: the composition's filtered route)

        Returns:
            BGR image of shape (height, width, 3)
        """
        route_points = as_geo_points(route) if route is not None else list(composition.route)
        view: List[GeoPoint] = list(route_points)
        for zone in composition:
            view.extend(zone.polygon)

        self.fit(view)
        paint_zones(self, composition, self.styles)
        self.draw_route(route_points)
        self.draw_markers(route_points)
        self.draw_scale_bar()
        return self.frame

    def save(self, path: Union[str, Path]) -> Path:
        """
        Write the current frame as an image (format from the suffix).

        Raises:
            RuntimeError: If nothing was rendered or the write failed
        """
        if self.frame is None:
            raise RuntimeError("Nothing rendered yet")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(path), self.frame):
            raise RuntimeError(f"Failed to write snapshot: {path}")

        self.logger.info(
            event=LogEvent.SNAPSHOT_RENDERED,
            message="Snapshot written",
            metadata={
                'path': str(path),
                'zoom': self.zoom,
                'size': f"{self.width}x{self.height}",
            },
        )
        return path

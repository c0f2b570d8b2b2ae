"""
Route Import and Export
=======================

Bounded Context: Flight routes from planning tools.

Reads KML, DJI WPML and KMZ archives into a Route. Sources, in priority
order:

    1. LineString coordinates (longest wins)
    2. DJI WPML waypoints (Placemarks carrying wpml:index, sorted by index)
    3. Polygon outer boundary (longest ring wins)
    4. Individual Point placemarks

Coordinates in KML are "lng,lat[,alt]".

Routes are exported the other way as DJI WPML KMZ archives
(wpmz/template.kml + wpmz/waylines.wpml), one waypoint per route point.
"""

import io
import math
import re
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from xml.etree import ElementTree

from sora_zone.geometry.points import GeoPoint
from sora_mqtt.logging import LogEvent, create_logger

logger = create_logger("route")

EARTH_RADIUS_M = 6371000.0
KMZ_TEMPLATE = "wpmz/template.kml"
KMZ_WAYLINES = "wpmz/waylines.wpml"
KMZ_CANDIDATES = ("doc.kml", KMZ_TEMPLATE, KMZ_WAYLINES)

KML_NS = "http://www.opengis.net/kml/2.2"
WPML_NS = "http://www.dji.com/wpmz/1.0.2"
DEFAULT_FLIGHT_HEIGHT_M = 50.0
WAYPOINT_SPEED_MS = 5
TRANSITIONAL_SPEED_MS = 8
DRONE_ENUM_VALUE = 68

ElementTree.register_namespace("wpml", WPML_NS)


class RouteImportError(ValueError):
    """Route file is unreadable or holds no coordinates."""


@dataclass(frozen=True)
class Route:
    """
    Imported flight route.

    Attributes:
        coordinates: Ordered route points
        total_distance_m: Great-circle length along the route
        imported_file_name: Source file name, if imported
    """

    coordinates: tuple
    total_distance_m: float
    imported_file_name: Optional[str] = None

    @classmethod
    def from_points(cls, points: Sequence[GeoPoint], file_name: Optional[str] = None) -> 'Route':
        return cls(
            coordinates=tuple(points),
            total_distance_m=total_distance_m(points),
            imported_file_name=file_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'coordinates': [p.to_dict() for p in self.coordinates],
            'totalDistance': self.total_distance_m,
        }
        if self.imported_file_name:
            data['importedFileName'] = self.imported_file_name
        return data


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)
    x = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(x), math.sqrt(1 - x))


def total_distance_m(points: Sequence[GeoPoint]) -> float:
    return sum(haversine_m(points[i - 1], points[i]) for i in range(1, len(points)))


def _local(tag: str) -> str:
    """Tag name without its XML namespace."""
    return tag.rsplit('}', 1)[-1]


def _find_all(node: ElementTree.Element, name: str) -> List[ElementTree.Element]:
    return [el for el in node.iter() if _local(el.tag) == name]


def _child_text(node: ElementTree.Element, path: Sequence[str]) -> Optional[str]:
    """Text of the first descendant chain matching `path` (namespace-agnostic)."""
    current = [node]
    for name in path:
        current = [el for parent in current for el in _find_all(parent, name) if el is not parent]
        if not current:
            return None
    return current[0].text


def _parse_coord_pair(raw: str) -> Optional[GeoPoint]:
    parts = raw.strip().split(',')
    if len(parts) < 2:
        return None
    try:
        lng, lat = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if math.isnan(lng) or math.isnan(lat):
        return None
    return GeoPoint(lat=lat, lng=lng)


def _parse_coords_text(text: Optional[str]) -> List[GeoPoint]:
    if not text:
        return []
    pairs = (_parse_coord_pair(chunk) for chunk in text.split())
    return [p for p in pairs if p is not None]


def _longest(node: ElementTree.Element, container: str) -> List[GeoPoint]:
    best: List[GeoPoint] = []
    for el in _find_all(node, container):
        for coords in _find_all(el, "coordinates"):
            parsed = _parse_coords_text(coords.text)
            if len(parsed) > len(best):
                best = parsed
    return best


def _wpml_waypoints(root: ElementTree.Element) -> List[GeoPoint]:
    indexed = []
    for placemark in _find_all(root, "Placemark"):
        index_text = _child_text(placemark, ["index"])
        if index_text is None:
            continue
        coord_text = _child_text(placemark, ["Point", "coordinates"])
        point = _parse_coord_pair(coord_text) if coord_text else None
        if point is not None:
            try:
                index = int(index_text.strip())
            except ValueError:
                index = 0
            indexed.append((index, point))
    indexed.sort(key=lambda item: item[0])
    return [point for _, point in indexed]


def _point_placemarks(root: ElementTree.Element) -> List[GeoPoint]:
    points = []
    for placemark in _find_all(root, "Placemark"):
        coord_text = _child_text(placemark, ["Point", "coordinates"])
        point = _parse_coord_pair(coord_text) if coord_text else None
        if point is not None:
            points.append(point)
    return points


def parse_kml_string(kml_text: Union[str, bytes], file_name: str = "route.kml") -> Route:
    """
    Parse KML or WPML text into a Route.

    Raises:
        RouteImportError: Invalid XML or no coordinates found
    """
    try:
        root = ElementTree.fromstring(kml_text)
    except ElementTree.ParseError as e:
        raise RouteImportError(f"Invalid KML file {file_name}: {e}") from e

    coords = _longest(root, "LineString")
    if not coords:
        coords = _wpml_waypoints(root)
    if not coords:
        outer = _find_all(root, "outerBoundaryIs")
        coords = max(
            (_longest(el, "LinearRing") for el in outer),
            key=len,
            default=[],
        )
    if not coords:
        coords = _point_placemarks(root)
    if not coords:
        raise RouteImportError(f"No coordinates found in {file_name}")

    return Route.from_points(coords, file_name=file_name)


def _read_kmz(path: Path) -> bytes:
    try:
        with zipfile.ZipFile(path) as archive:
            names = archive.namelist()
            for candidate in KMZ_CANDIDATES:
                if candidate in names:
                    return archive.read(candidate)
            for name in names:
                if name.endswith('.kml') or name.endswith('.wpml'):
                    return archive.read(name)
    except zipfile.BadZipFile as e:
        raise RouteImportError(f"Invalid KMZ archive {path.name}: {e}") from e
    raise RouteImportError(f"No KML file found in archive {path.name}")


def load_route(path: Union[str, Path]) -> Route:
    """
    Load a route from a .kml, .wpml or .kmz file.

    Raises:
        FileNotFoundError: If the file does not exist
        RouteImportError: If the file holds no usable route
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Route file not found: {path}")

    try:
        if path.suffix.lower() == '.kmz':
            text = _read_kmz(path)
        else:
            text = path.read_bytes()
        route = parse_kml_string(text, file_name=path.name)
    except RouteImportError as e:
        logger.error(
            event=LogEvent.ROUTE_IMPORT_ERROR,
            message="Failed to import route",
            metadata={'file': str(path)},
            exc_info=e,
        )
        raise

    logger.info(
        event=LogEvent.ROUTE_IMPORTED,
        message=f"Imported route with {len(route.coordinates)} points",
        metadata={
            'file': path.name,
            'points': len(route.coordinates),
            'total_distance_m': round(route.total_distance_m, 1),
        },
    )
    return route


def sanitize_filename(name: str) -> str:
    """
    File-system safe mission name.

    Example:
        >>> sanitize_filename("Bryggen østre kai")
        'Bryggen_ostre_kai'
    """
    for source, target in (("æ", "ae"), ("Æ", "ae"), ("ø", "o"), ("Ø", "o"), ("å", "a"), ("Å", "a")):
        name = name.replace(source, target)
    name = re.sub(r"[^a-zA-Z0-9\-_]", "_", name)
    return re.sub(r"_+", "_", name).strip("_")


def _kml(parent: ElementTree.Element, tag: str, text: Any = None) -> ElementTree.Element:
    el = ElementTree.SubElement(parent, f"{{{KML_NS}}}{tag}")
    if text is not None:
        el.text = str(text)
    return el


def _wpml(parent: ElementTree.Element, tag: str, text: Any = None) -> ElementTree.Element:
    el = ElementTree.SubElement(parent, f"{{{WPML_NS}}}{tag}")
    if text is not None:
        el.text = str(text)
    return el


def _wayline_document(
    route: Route,
    flight_height_m: float,
    timestamp: str,
    mission_name: Optional[str] = None,
) -> bytes:
    """One WPML document; the template copy carries the mission name."""
    root = ElementTree.Element(f"{{{KML_NS}}}kml")
    document = _kml(root, "Document")
    _wpml(document, "author", "sora-zones")
    _wpml(document, "createTime", timestamp)
    _wpml(document, "updateTime", timestamp)

    mission = _wpml(document, "missionConfig")
    _wpml(mission, "flyToWaylineMode", "safely")
    _wpml(mission, "finishAction", "goHome")
    _wpml(mission, "exitOnRCLost", "executeLostAction")
    _wpml(mission, "executeRCLostAction", "goBack")
    _wpml(mission, "globalTransitionalSpeed", TRANSITIONAL_SPEED_MS)
    drone = _wpml(mission, "droneInfo")
    _wpml(drone, "droneEnumValue", DRONE_ENUM_VALUE)
    _wpml(drone, "droneSubEnumValue", 0)

    folder = _kml(document, "Folder")
    _wpml(folder, "templateId", 0)
    _wpml(folder, "executeHeightMode", "relativeToStartPoint")
    _wpml(folder, "waylineId", 0)
    _wpml(folder, "distance", int(round(route.total_distance_m)))
    _wpml(folder, "duration", 0)
    _wpml(folder, "autoFlightSpeed", WAYPOINT_SPEED_MS)
    if mission_name is not None:
        _kml(folder, "name", mission_name)

    for index, point in enumerate(route.coordinates):
        placemark = _kml(folder, "Placemark")
        _wpml(placemark, "index", index)
        _wpml(placemark, "executeHeight", f"{flight_height_m:g}")
        _wpml(placemark, "waypointSpeed", WAYPOINT_SPEED_MS)
        heading = _wpml(placemark, "waypointHeadingParam")
        _wpml(heading, "waypointHeadingMode", "followWayline")
        turn = _wpml(placemark, "waypointTurnParam")
        _wpml(turn, "waypointTurnMode", "toPointAndStopWithDiscontinuityCurvature")
        _wpml(turn, "waypointTurnDampingDist", 0)
        _kml(_kml(placemark, "Point"), "coordinates", f"{point.lng},{point.lat}")

    return ElementTree.tostring(
        root, encoding="utf-8", xml_declaration=True, default_namespace=KML_NS
    )


def kmz_bytes(
    route: Route,
    mission_name: str,
    flight_height_m: float = DEFAULT_FLIGHT_HEIGHT_M,
) -> bytes:
    """
    DJI WPML KMZ archive for a route, in memory.

    Raises:
        ValueError: Empty route or non-positive flight height
    """
    if not route.coordinates:
        raise ValueError("Cannot export a route without coordinates")
    if not math.isfinite(flight_height_m) or flight_height_m <= 0:
        raise ValueError(f"Flight height must be > 0, got {flight_height_m}")

    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(
            KMZ_TEMPLATE,
            _wayline_document(route, flight_height_m, timestamp, mission_name=mission_name),
        )
        archive.writestr(KMZ_WAYLINES, _wayline_document(route, flight_height_m, timestamp))
    return buffer.getvalue()


def export_kmz(
    route: Route,
    mission_name: str,
    path: Union[str, Path],
    flight_height_m: float = DEFAULT_FLIGHT_HEIGHT_M,
) -> Path:
    """
    Write a route as a DJI WPML KMZ archive.

    The archive loads back with load_route(): its template.kml holds the
    waypoints as indexed Placemarks.

    Args:
        route: Route to export
        mission_name: Mission name written into template.kml
        path: Target .kmz file (parent directories are created)
        flight_height_m: Waypoint height relative to the start point

    Returns:
        The written path

    Raises:
        ValueError: Empty route or non-positive flight height
    """
    data = kmz_bytes(route, mission_name, flight_height_m)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)

    logger.info(
        event=LogEvent.ROUTE_EXPORTED,
        message=f"Exported route with {len(route.coordinates)} waypoints",
        metadata={
            'file': path.name,
            'mission': mission_name,
            'waypoints': len(route.coordinates),
            'flight_height_m': flight_height_m,
        },
    )
    return path

"""
SORA Zone Types
===============

Bounded Context: Zone definitions produced by the composer.

Design:
- Frozen dataclasses (value objects, safe to share across threads)
- Enums for mode and labels so branches are exhaustive
- Polygons stored as tuples of GeoPoint
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from sora_zone.geometry.errors import GeometryError
from sora_zone.geometry.offset import JoinStyle
from sora_zone.geometry.points import GeoPoint


class BufferMode(str, Enum):
    """How the route is buffered (values as stored by the dashboard)."""
    CORRIDOR = "corridor"
    CONVEX_HULL = "convexHull"


class ZoneLabel(str, Enum):
    """SORA operational volume rings, inner to outer."""
    FLIGHT_GEOGRAPHY = "flight_geography"
    CONTINGENCY = "contingency"
    GROUND_RISK_BUFFER = "ground_risk_buffer"

    @property
    def display_name(self) -> str:
        return {
            ZoneLabel.FLIGHT_GEOGRAPHY: "Flight Geography",
            ZoneLabel.CONTINGENCY: "Contingency Area",
            ZoneLabel.GROUND_RISK_BUFFER: "Ground Risk Buffer",
        }[self]


@dataclass(frozen=True)
class ZoneSettings:
    """
    SORA distances and options for one mission.

    Attributes:
        flight_geography_m: Buffer of the flight geography around the route
        contingency_m: Width of the contingency area beyond flight geography
        ground_risk_m: Width of the ground risk buffer beyond contingency
        mode: Buffer mode; None selects convex hull for closed routes
        enabled: When False the composer returns no zones
        flight_altitude_m: Flight geography ceiling
        contingency_height_m: Extra height of the contingency volume
        cap_segments: Points per semicircular corridor end cap
        hull_join: Corner style of convex hull offsets

    Invariants:
        - All distances and heights are finite and >= 0
        - cap_segments >= 2
    """

    flight_geography_m: float = 0.0
    contingency_m: float = 50.0
    ground_risk_m: float = 100.0
    mode: Optional[BufferMode] = None
    enabled: bool = True
    flight_altitude_m: float = 120.0
    contingency_height_m: float = 30.0
    cap_segments: int = 16
    hull_join: JoinStyle = JoinStyle.MITER

    def __post_init__(self):
        """Validate settings."""
        for name in (
            "flight_geography_m",
            "contingency_m",
            "ground_risk_m",
            "flight_altitude_m",
            "contingency_height_m",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite value >= 0, got {value}")
        if self.cap_segments < 2:
            raise ValueError(f"cap_segments must be >= 2, got {self.cap_segments}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_geography_m': self.flight_geography_m,
            'contingency_m': self.contingency_m,
            'ground_risk_m': self.ground_risk_m,
            'mode': self.mode.value if self.mode else None,
            'enabled': self.enabled,
            'flight_altitude_m': self.flight_altitude_m,
            'contingency_height_m': self.contingency_height_m,
            'cap_segments': self.cap_segments,
            'hull_join': self.hull_join.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ZoneSettings':
        """Deserialize from the snake_case shape produced by to_dict().

        Raises:
            ValueError: On unknown mode/join values or invalid numbers
        """
        defaults = cls()
        try:
            mode = data.get('mode')
            return cls(
                flight_geography_m=float(data.get('flight_geography_m', defaults.flight_geography_m)),
                contingency_m=float(data.get('contingency_m', defaults.contingency_m)),
                ground_risk_m=float(data.get('ground_risk_m', defaults.ground_risk_m)),
                mode=BufferMode(mode) if mode else None,
                enabled=bool(data.get('enabled', defaults.enabled)),
                flight_altitude_m=float(data.get('flight_altitude_m', defaults.flight_altitude_m)),
                contingency_height_m=float(data.get('contingency_height_m', defaults.contingency_height_m)),
                cap_segments=int(data.get('cap_segments', defaults.cap_segments)),
                hull_join=JoinStyle(data.get('hull_join', defaults.hull_join.value)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid zone settings: {e}")


@dataclass(frozen=True)
class Zone:
    """
    One SORA ring ready for rendering.

    Attributes:
        label: Which ring this is
        polygon: Closed ring (last point does not repeat the first)
        cumulative_distance_m: Buffer distance from the route actually used
        mode: Buffer mode the polygon was built with
        height_m: Volume ceiling, None for the ground risk buffer
        description: Popup text for map layers
    """

    label: ZoneLabel
    polygon: Tuple[GeoPoint, ...]
    cumulative_distance_m: float
    mode: BufferMode
    height_m: Optional[float] = None
    description: str = ""

    @property
    def vertex_count(self) -> int:
        return len(self.polygon)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label.value,
            'title': self.label.display_name,
            'cumulative_distance_m': self.cumulative_distance_m,
            'mode': self.mode.value,
            'height_m': self.height_m,
            'description': self.description,
            'polygon': [p.to_dict() for p in self.polygon],
        }


@dataclass(frozen=True)
class ZoneSkip:
    """A ring that could not be built, with the reason."""

    label: ZoneLabel
    cumulative_distance_m: float
    error: GeometryError

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label.value,
            'cumulative_distance_m': self.cumulative_distance_m,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class ZoneComposition:
    """
    Result of compose_zones().

    Iterates over zones in draw order (outer to inner); failures are kept
    in `skipped` instead of being discarded.
    """

    zones: Tuple[Zone, ...] = ()
    skipped: Tuple[ZoneSkip, ...] = ()
    mode: Optional[BufferMode] = None
    route: Tuple[GeoPoint, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Zone]:
        return iter(self.zones)

    def __len__(self) -> int:
        return len(self.zones)

    def __getitem__(self, index: int) -> Zone:
        return self.zones[index]

    def get(self, label: ZoneLabel) -> Optional[Zone]:
        """Zone by label, None if skipped or disabled."""
        for zone in self.zones:
            if zone.label == label:
                return zone
        return None

    @property
    def complete(self) -> bool:
        return not self.skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode.value if self.mode else None,
            'zones': [z.to_dict() for z in self.zones],
            'skipped': [s.to_dict() for s in self.skipped],
        }

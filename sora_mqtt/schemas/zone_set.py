"""
Zone Set Message Schema
=======================

Bounded Context: SORA Zone Data Structures

Schema of the zone set published for a mission via MQTT.

Design:
- ZonePayload: One ring, polygon as [{lat, lng}, ...]
- SkippedZonePayload: A ring the composer could not build, with the reason
- ZoneSetMessage: All rings of one mission, outer to inner

Message Flow:
    compose_zones → ZoneComposition → ZoneSetMessage → ZoneSetPublisher → MQTT

The schema does not import sora_zone: `from_zone` / `from_composition`
read attributes only, so the messaging package stays independent of the
geometry engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import Timestamp

SCHEMA_VERSION = "1.0"


def _enum_value(value: Any) -> Any:
    return getattr(value, 'value', value)


@dataclass(frozen=True)
class ZonePayload:
    """
    One SORA ring as published.

    Attributes:
        label: Ring identifier (flight_geography, contingency, ground_risk_buffer)
        title: Display name
        cumulative_distance_m: Buffer distance from the route
        mode: Buffer mode ("corridor" or "convexHull")
        polygon: Ring vertices as {lat, lng} dicts (implicitly closed)
        height_m: Volume ceiling, None for the ground risk buffer
        description: Popup text

    Invariants:
        - polygon has >= 3 vertices
        - cumulative_distance_m >= 0
    """
    label: str
    title: str
    cumulative_distance_m: float
    mode: str
    polygon: List[Dict[str, float]] = field(default_factory=list)
    height_m: Optional[float] = None
    description: str = ""

    def __post_init__(self):
        """Validate invariants."""
        if len(self.polygon) < 3:
            raise ValueError(
                f"Zone polygon must have >= 3 vertices, got {len(self.polygon)}"
            )
        if self.cumulative_distance_m < 0:
            raise ValueError(
                f"Cumulative distance must be >= 0, got {self.cumulative_distance_m}"
            )

    @classmethod
    def from_zone(cls, zone: Any) -> 'ZonePayload':
        """Build from a sora_zone Zone."""
        return cls(
            label=_enum_value(zone.label),
            title=zone.label.display_name,
            cumulative_distance_m=float(zone.cumulative_distance_m),
            mode=_enum_value(zone.mode),
            polygon=[{'lat': p.lat, 'lng': p.lng} for p in zone.polygon],
            height_m=zone.height_m,
            description=zone.description,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result = {
            'label': self.label,
            'title': self.title,
            'cumulative_distance_m': self.cumulative_distance_m,
            'mode': self.mode,
            'polygon': [dict(p) for p in self.polygon],
            'description': self.description,
        }
        if self.height_m is not None:
            result['height_m'] = self.height_m
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ZonePayload':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            height = data.get('height_m')
            return cls(
                label=str(data['label']),
                title=str(data.get('title', data['label'])),
                cumulative_distance_m=float(data['cumulative_distance_m']),
                mode=str(data['mode']),
                polygon=[
                    {'lat': float(p['lat']), 'lng': float(p['lng'])}
                    for p in data['polygon']
                ],
                height_m=float(height) if height is not None else None,
                description=str(data.get('description', '')),
            )
        except KeyError as e:
            raise ValueError(f"Missing required ZonePayload field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ZonePayload data: {e}")

    @property
    def vertex_count(self) -> int:
        return len(self.polygon)


@dataclass(frozen=True)
class SkippedZonePayload:
    """A ring that was not built."""
    label: str
    cumulative_distance_m: float
    reason: str

    @classmethod
    def from_skip(cls, skip: Any) -> 'SkippedZonePayload':
        return cls(
            label=_enum_value(skip.label),
            cumulative_distance_m=float(skip.cumulative_distance_m),
            reason=skip.reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'cumulative_distance_m': self.cumulative_distance_m,
            'reason': self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SkippedZonePayload':
        try:
            return cls(
                label=str(data['label']),
                cumulative_distance_m=float(data['cumulative_distance_m']),
                reason=str(data.get('reason', '')),
            )
        except KeyError as e:
            raise ValueError(f"Missing required SkippedZonePayload field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid SkippedZonePayload data: {e}")


@dataclass(frozen=True)
class ZoneSetMessage:
    """
    All SORA rings of one mission, for MQTT publication.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 timestamp of message creation
        mission_id: Mission identifier
        mode: Buffer mode used, None when zones are disabled
        zones: Rings in draw order (outer to inner)
        skipped: Rings that could not be built

    Example:
        >>> msg = ZoneSetMessage.from_composition("mission-42", composition)
        >>> [z.label for z in msg.zones]
        ['ground_risk_buffer', 'contingency', 'flight_geography']
    """
    schema_version: str
    timestamp: Timestamp
    mission_id: str
    mode: Optional[str] = None
    zones: List[ZonePayload] = field(default_factory=list)
    skipped: List[SkippedZonePayload] = field(default_factory=list)

    def __post_init__(self):
        """Validate invariants."""
        if not self.mission_id:
            raise ValueError("Mission ID must not be empty")

    @classmethod
    def from_composition(
        cls,
        mission_id: str,
        composition: Any,
        timestamp: Optional[Timestamp] = None,
    ) -> 'ZoneSetMessage':
        """Build from a sora_zone ZoneComposition."""
        return cls(
            schema_version=SCHEMA_VERSION,
            timestamp=timestamp or Timestamp.now(),
            mission_id=mission_id,
            mode=_enum_value(composition.mode) if composition.mode else None,
            zones=[ZonePayload.from_zone(zone) for zone in composition.zones],
            skipped=[SkippedZonePayload.from_skip(s) for s in composition.skipped],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'mission_id': self.mission_id,
            'mode': self.mode,
            'zones': [zone.to_dict() for zone in self.zones],
            'skipped': [skip.to_dict() for skip in self.skipped],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ZoneSetMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                mission_id=str(data['mission_id']),
                mode=data.get('mode'),
                zones=[ZonePayload.from_dict(z) for z in data.get('zones', [])],
                skipped=[SkippedZonePayload.from_dict(s) for s in data.get('skipped', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required ZoneSetMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ZoneSetMessage data: {e}")

    @property
    def zone_count(self) -> int:
        """Number of zones in this message."""
        return len(self.zones)

    def get_zone(self, label: str) -> Optional[ZonePayload]:
        """Find a zone by label, None if absent."""
        for zone in self.zones:
            if zone.label == label:
                return zone
        return None

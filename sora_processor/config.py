"""
Configuration schema for the mission zone service.

Defines the mission (route and SORA settings), the snapshot canvas and the
MQTT publishing settings. Missions come either from a YAML file or from the
camelCase JSON blob the dashboard stores with each mission.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from sora_zone import BufferMode, GeoPoint, ZoneSettings, load_route
from sora_zone.geometry import as_geo_points

# Defaults of the dashboard's SORA settings panel
BLOB_DEFAULTS = {
    "enabled": False,
    "flightAltitude": 120,
    "flightGeographyDistance": 0,
    "contingencyDistance": 50,
    "contingencyHeight": 30,
    "groundRiskDistance": 100,
}


@dataclass(frozen=True)
class SnapshotConfig:
    """Snapshot canvas configuration."""

    width: int = 800
    height: int = 400
    output_path: Optional[Path] = None

    def __post_init__(self):
        """Validate snapshot configuration."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Snapshot size must have positive dimensions, got {self.width}x{self.height}"
            )
        if self.width > 4096 or self.height > 4096:
            raise ValueError(
                f"Snapshot size too large (max 4096x4096), got {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1
    retain: bool = True

    zone_topic: str = "sora/data/zones/{mission_id}"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topic_for(self, mission_id: str) -> str:
        return self.zone_topic.format(mission_id=mission_id)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "broker": self.broker,
            "port": self.port,
            "qos": self.qos,
            "retain": self.retain,
            "zone_topic": self.zone_topic,
        }
        if self.username is not None:
            data["username"] = self.username
        if self.password is not None:
            data["password"] = self.password
        return data


def settings_from_blob(sora: Dict[str, Any]) -> ZoneSettings:
    """
    ZoneSettings from the dashboard's `soraSettings` record.

    Missing keys take the settings panel defaults (zones disabled, 50 m
    contingency, 100 m ground risk). A missing `bufferMode` selects the
    mode from the route shape.

    Raises:
        ValueError: On unknown buffer mode or invalid numbers
    """
    values = dict(BLOB_DEFAULTS)
    values.update({k: v for k, v in (sora or {}).items() if v is not None})
    try:
        mode = values.get("bufferMode")
        return ZoneSettings(
            flight_geography_m=float(values["flightGeographyDistance"]),
            contingency_m=float(values["contingencyDistance"]),
            ground_risk_m=float(values["groundRiskDistance"]),
            mode=BufferMode(mode) if mode else None,
            enabled=bool(values["enabled"]),
            flight_altitude_m=float(values["flightAltitude"]),
            contingency_height_m=float(values["contingencyHeight"]),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid soraSettings: {e}")


@dataclass(frozen=True)
class MissionConfig:
    """
    One mission: route, SORA settings and output configuration.

    Immutable after construction (frozen dataclass).
    """

    mission_id: str
    route: Tuple[GeoPoint, ...] = ()
    settings: ZoneSettings = field(default_factory=ZoneSettings)
    route_file: Optional[Path] = None
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        """Validate mission configuration."""
        if not self.mission_id:
            raise ValueError("mission_id cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "MissionConfig":
        """
        Build from a parsed YAML document.

        A `route_file` is resolved against `base_dir` and imported when no
        inline `route` is given.

        Raises:
            ValueError: If required fields are missing or invalid
            FileNotFoundError: If route_file does not exist
        """
        if not isinstance(data, dict):
            raise ValueError("Mission configuration must be a mapping")

        try:
            mission_id = str(data["mission_id"])
        except KeyError as e:
            raise ValueError(f"Missing required mission field: {e}")

        route_file = data.get("route_file")
        if route_file is not None:
            route_file = Path(route_file)
            if base_dir is not None and not route_file.is_absolute():
                route_file = base_dir / route_file

        try:
            route = tuple(as_geo_points(data.get("route") or []))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid route: {e}")
        if not route and route_file is not None:
            route = load_route(route_file).coordinates

        snapshot_data = dict(data.get("snapshot") or {})
        if snapshot_data.get("output_path"):
            snapshot_data["output_path"] = Path(snapshot_data["output_path"])

        try:
            snapshot = SnapshotConfig(**snapshot_data)
            mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))
        except TypeError as e:
            raise ValueError(f"Invalid mission configuration: {e}")

        return cls(
            mission_id=mission_id,
            route=route,
            settings=ZoneSettings.from_dict(data.get("sora_settings") or {}),
            route_file=route_file,
            snapshot=snapshot,
            mqtt_config=mqtt_config,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "MissionConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            mission_id: "survey-0042"
            route:                       # [lat, lng] pairs or {lat, lng}
              - [59.9000, 10.7000]
              - [59.9100, 10.7200]
            # route_file: "routes/survey.kmz"   # instead of route

            sora_settings:
              flight_geography_m: 10
              contingency_m: 50
              ground_risk_m: 100
              mode: "corridor"           # or "convexHull"; omit for auto
              hull_join: "miter"         # or "round"

            snapshot:
              width: 800
              height: 400
              output_path: "snapshots/survey-0042.png"

            mqtt_config:
              broker: "localhost"
              port: 1883
        """
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data, base_dir=yaml_path.parent)

    @classmethod
    def from_mission_blob(
        cls,
        blob: Dict[str, Any],
        mission_id: Optional[str] = None,
    ) -> "MissionConfig":
        """
        Build from the dashboard's stored route blob.

        Accepts either the route record itself
        (`{coordinates, soraSettings, totalDistance, importedFileName}`) or a
        mission record holding it under `route`.

        Raises:
            ValueError: If the blob is malformed or no mission id is known
        """
        if not isinstance(blob, dict):
            raise ValueError("Mission blob must be a JSON object")

        route_blob = blob.get("route") if isinstance(blob.get("route"), dict) else blob
        mission_id = mission_id or blob.get("id") or blob.get("mission_id")
        if not mission_id:
            raise ValueError("Mission blob has no id; pass mission_id explicitly")

        try:
            route = tuple(as_geo_points(route_blob.get("coordinates") or []))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid route coordinates: {e}")

        return cls(
            mission_id=str(mission_id),
            route=route,
            settings=settings_from_blob(route_blob.get("soraSettings") or {}),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MissionConfig":
        """YAML mission file, or JSON mission blob (by suffix)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Mission file not found: {path}")
        if path.suffix.lower() == ".json":
            with open(path) as f:
                try:
                    blob = json.load(f)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON in {path}: {e}")
            if not isinstance(blob, dict):
                raise ValueError(f"Mission blob in {path} must be a JSON object")
            return cls.from_mission_blob(blob, mission_id=blob.get("id") or path.stem)
        try:
            return cls.from_yaml(path)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """YAML-ready dict (inverse of from_dict for inline routes)."""
        data: Dict[str, Any] = {
            "mission_id": self.mission_id,
            "route": [[p.lat, p.lng] for p in self.route],
            "sora_settings": self.settings.to_dict(),
            "snapshot": {"width": self.snapshot.width, "height": self.snapshot.height},
            "mqtt_config": self.mqtt_config.to_dict(),
        }
        if self.snapshot.output_path is not None:
            data["snapshot"]["output_path"] = str(self.snapshot.output_path)
        return data

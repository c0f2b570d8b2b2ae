"""
SORA zones CLI - Main entry point.

Computes, renders and publishes the SORA zones of a mission, imports
routes from KML/KMZ files and exports them as DJI WPML KMZ archives.
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sora_zone import (
    Route,
    RouteImportError,
    ZoneComposition,
    export_kmz,
    load_route,
    sanitize_filename,
)
from sora_mqtt.logging import set_default_level
from sora_processor import MissionConfig, MissionZoneService


def composition_to_geojson(composition: ZoneComposition, mission_id: str) -> Dict[str, Any]:
    """
    GeoJSON FeatureCollection of the zones (outer to inner).

    Rings are closed and use GeoJSON's [lng, lat] axis order.
    """
    features = []
    for zone in composition:
        ring = [[p.lng, p.lat] for p in zone.polygon]
        ring.append(ring[0])
        features.append({
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [ring]},
            "properties": {
                "mission_id": mission_id,
                "label": zone.label.value,
                "title": zone.label.display_name,
                "cumulative_distance_m": zone.cumulative_distance_m,
                "mode": zone.mode.value,
                "height_m": zone.height_m,
                "description": zone.description,
            },
        })
    return {"type": "FeatureCollection", "features": features}


def format_summary(config: MissionConfig, composition: ZoneComposition) -> str:
    lines = [
        f"Mission {config.mission_id}: {len(config.route)} route points, "
        f"mode={composition.mode.value if composition.mode else 'disabled'}",
    ]
    for zone in composition:
        lines.append(
            f"  {zone.label.display_name:<20} {zone.cumulative_distance_m:>8.1f} m"
            f"  {zone.vertex_count:>4} vertices"
        )
    for skip in composition.skipped:
        lines.append(f"  {skip.label.display_name:<20} skipped: {skip.reason}")
    if not config.settings.enabled:
        lines.append("  SORA zones disabled for this mission")
    return "\n".join(lines)


def cmd_compute(args: argparse.Namespace) -> int:
    config = MissionConfig.from_file(args.mission)
    composition = MissionZoneService(config).compute()
    print(format_summary(config, composition))

    if args.geojson:
        path = Path(args.geojson)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(composition_to_geojson(composition, config.mission_id), f, indent=2)
        print(f"GeoJSON written to {path}")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    config = MissionConfig.from_file(args.mission)
    service = MissionZoneService(config)
    service.render_snapshot(args.output)
    print(f"Snapshot written to {args.output}")
    return 0


def cmd_import_route(args: argparse.Namespace) -> int:
    route = load_route(args.route_file)
    print(
        f"Imported {len(route.coordinates)} points from {route.imported_file_name} "
        f"({route.total_distance_m / 1000:.2f} km)"
    )

    if args.output:
        mission_id = args.mission_id or Path(args.route_file).stem
        config = MissionConfig(mission_id=mission_id, route=route.coordinates)
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(config.to_dict(), f, sort_keys=False)
        print(f"Mission written to {path}")
    return 0


def cmd_export_route(args: argparse.Namespace) -> int:
    config = MissionConfig.from_file(args.mission)
    name = args.name or config.mission_id
    height = args.height if args.height is not None else config.settings.flight_altitude_m
    output = args.output or f"{sanitize_filename(name) or 'route'}.kmz"

    route = Route.from_points(config.route)
    path = export_kmz(route, name, output, flight_height_m=height)
    print(f"Exported {len(route.coordinates)} waypoints at {height:g} m to {path}")
    return 0


def cmd_publish(args: argparse.Namespace) -> int:
    config = MissionConfig.from_file(args.mission)
    mqtt_overrides = {}
    if args.broker:
        mqtt_overrides["broker"] = args.broker
    if args.port:
        mqtt_overrides["port"] = args.port
    if mqtt_overrides:
        config = dataclasses.replace(
            config,
            mqtt_config=dataclasses.replace(config.mqtt_config, **mqtt_overrides),
        )

    service = MissionZoneService(config)
    try:
        published = service.publish(timeout=args.timeout)
    finally:
        service.close()

    if not published:
        print(f"Error: failed to publish zones for {config.mission_id}", file=sys.stderr)
        return 1
    print(f"Published {len(service.compute())} zones to {config.mqtt_config.topic_for(config.mission_id)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sora-zones",
        description="SORA zones - compute, render and publish safety zones of a flight route",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Zones of a mission (YAML config or dashboard JSON blob)
  sora-zones compute missions/survey.yaml
  sora-zones compute missions/survey.json --geojson out/survey.geojson

  # Snapshot image
  sora-zones render missions/survey.yaml --output out/survey.png

  # Route from a planning tool
  sora-zones import-route routes/survey.kmz --output missions/survey.yaml

  # Route as a DJI WPML KMZ
  sora-zones export-route missions/survey.yaml --output out/survey.kmz --height 60

  # Publish zones to MQTT (retained)
  sora-zones publish missions/survey.yaml --broker localhost --port 1883
"""
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compute = subparsers.add_parser("compute", help="Compute zones and print a summary")
    compute.add_argument("mission", help="Mission YAML or JSON blob")
    compute.add_argument("--geojson", help="Write zones as GeoJSON to this path")
    compute.set_defaults(handler=cmd_compute)

    render = subparsers.add_parser("render", help="Render a mission snapshot")
    render.add_argument("mission", help="Mission YAML or JSON blob")
    render.add_argument("--output", required=True, help="Image path (e.g. snapshot.png)")
    render.set_defaults(handler=cmd_render)

    import_route = subparsers.add_parser("import-route", help="Import a KML/KMZ/WPML route")
    import_route.add_argument("route_file", help="Path to .kml, .kmz or .wpml")
    import_route.add_argument("--output", help="Write a mission YAML with the route")
    import_route.add_argument("--mission-id", help="Mission ID (default: file name)")
    import_route.set_defaults(handler=cmd_import_route)

    export_route = subparsers.add_parser("export-route", help="Export the mission route as a DJI WPML KMZ")
    export_route.add_argument("mission", help="Mission YAML or JSON blob")
    export_route.add_argument("--output", help="KMZ path (default: <sanitized name>.kmz)")
    export_route.add_argument("--name", help="Mission name in the archive (default: mission ID)")
    export_route.add_argument(
        "--height", type=float, help="Waypoint height in meters (default: mission flight altitude)"
    )
    export_route.set_defaults(handler=cmd_export_route)

    publish = subparsers.add_parser("publish", help="Publish zones to MQTT")
    publish.add_argument("mission", help="Mission YAML or JSON blob")
    publish.add_argument("--broker", help="MQTT broker host (overrides mission config)")
    publish.add_argument("--port", type=int, help="MQTT broker port (overrides mission config)")
    publish.add_argument("--timeout", type=float, default=10.0, help="Connect timeout in seconds")
    publish.set_defaults(handler=cmd_publish)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    set_default_level(getattr(logging, args.log_level))

    try:
        return args.handler(args)
    except (FileNotFoundError, RouteImportError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

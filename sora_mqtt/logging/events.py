"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)
- Searchable in log aggregators (Elasticsearch, CloudWatch Insights)

Event Naming Convention:
    <component>.<category>.<action>

    component: geometry, zone, route, snapshot, mqtt, error
    category: composed, skipped, fallback, publish
    action: success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.label
    | filter event = "zone.skipped"
    | stats count() by metadata.reason
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - geometry.*: Buffering engine
    - zone.*: Zone composition
    - route.*: Route import and export
    - snapshot.*: Raster snapshots
    - mqtt.*: MQTT broker interactions
    - error.*: Error conditions
    """

    # ========== Geometry Events ==========
    GEOMETRY_FALLBACK = "geometry.fallback"
    """Buffer could not be built; input returned unchanged."""

    # ========== Zone Events ==========
    ROUTE_FILTERED = "zone.route_filtered"
    """Unusable points (non-finite, null island) dropped from a route."""

    ZONE_COMPOSED = "zone.composed"
    """A SORA zone polygon was produced."""

    ZONE_SKIPPED = "zone.skipped"
    """A SORA zone could not be produced and was skipped."""

    ZONE_SET_SERIALIZED = "zone.set.serialized"
    """Zone set message serialized to JSON."""

    ZONE_SET_PUBLISHED = "zone.set.published"
    """Zone set message published for a mission."""

    # ========== Route / Snapshot Events ==========
    ROUTE_IMPORTED = "route.imported"
    """Route parsed from a KML/KMZ file."""

    ROUTE_EXPORTED = "route.exported"
    """Route written as a DJI WPML KMZ archive."""

    SNAPSHOT_RENDERED = "snapshot.rendered"
    """Mission snapshot image written."""

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    ROUTE_IMPORT_ERROR = "error.route_import"
    """Failed to read a route file."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""


# Event categories for filtering
ZONE_EVENTS = {
    LogEvent.ROUTE_FILTERED,
    LogEvent.ZONE_COMPOSED,
    LogEvent.ZONE_SKIPPED,
    LogEvent.ZONE_SET_SERIALIZED,
    LogEvent.ZONE_SET_PUBLISHED,
}

MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.ROUTE_IMPORT_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
}

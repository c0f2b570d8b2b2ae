"""
sora_processor - Mission zone service

This package ties a mission configuration (route and SORA settings) to the
zone engine, the snapshot renderer and the MQTT zone set publisher.

Architecture:
- MissionConfig: Configuration management (YAML or dashboard blob)
- MissionZoneService: Compute, render, publish
"""

from sora_processor.config import MissionConfig, MQTTConfig, SnapshotConfig
from sora_processor.service import MissionZoneService, create_publisher

__all__ = [
    "MissionConfig",
    "MQTTConfig",
    "SnapshotConfig",
    "MissionZoneService",
    "create_publisher",
]

"""
SORA MQTT Schemas
=================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization, from_dict() for deserialization
- Schema versioning for evolution

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper

Zone Set Types:
    ZonePayload: One SORA ring
    SkippedZonePayload: A ring that could not be built
    ZoneSetMessage: All rings of one mission
"""

from .common import Timestamp
from .zone_set import (
    SCHEMA_VERSION,
    ZonePayload,
    SkippedZonePayload,
    ZoneSetMessage,
)

__all__ = [
    'Timestamp',
    'SCHEMA_VERSION',
    'ZonePayload',
    'SkippedZonePayload',
    'ZoneSetMessage',
]

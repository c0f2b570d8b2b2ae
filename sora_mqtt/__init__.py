"""
SORA MQTT Communication Package
===============================

Bounded Context: Communication Protocol for SORA Zones

MQTT messaging and structured logging for the SORA zone engine. The
geometry engine computes zones; this package serializes and publishes them
for dashboards rendering remotely, and provides the JSON logger every
component uses.

Architecture:
- schemas/: Immutable message structures
- publishers/: Message producers (ZoneSetPublisher)
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    Timestamp, ZonePayload, SkippedZonePayload, ZoneSetMessage

Publishers:
    BasePublisher, ZoneSetPublisher

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from sora_mqtt import ZoneSetMessage, ZoneSetPublisher, create_logger
    >>> publisher = ZoneSetPublisher(
    ...     broker_host="localhost",
    ...     topic="sora/data/zones/mission-42",
    ...     logger=create_logger("publisher")
    ... )
    >>> if publisher.connect():
    ...     publisher.publish_zone_set(
    ...         ZoneSetMessage.from_composition("mission-42", composition)
    ...     )
"""

__version__ = "1.0.0"

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

from .schemas import (
    Timestamp,
    ZonePayload,
    SkippedZonePayload,
    ZoneSetMessage,
)

from .publishers import (
    BasePublisher,
    ZoneSetPublisher,
)

__all__ = [
    '__version__',
    # Schemas
    'Timestamp',
    'ZonePayload',
    'SkippedZonePayload',
    'ZoneSetMessage',
    # Publishers
    'BasePublisher',
    'ZoneSetPublisher',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]

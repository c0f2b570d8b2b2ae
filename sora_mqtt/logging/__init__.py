"""
Structured Logging for SORA zones
=================================

Bounded Context: Observability

JSON-structured logging shared by the geometry engine, the composer, the
renderer and the MQTT publishers.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from sora_mqtt.logging import create_logger, LogEvent
    >>> logger = create_logger("composer")
    >>> logger.warning(
    ...     event=LogEvent.ZONE_SKIPPED,
    ...     message="Route has no usable points",
    ...     metadata={'label': 'ground_risk_buffer'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger, set_default_level

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
    'set_default_level',
]

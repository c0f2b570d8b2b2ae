"""
Zone Set Publisher
==================

Bounded Context: SORA Zone Message Production

Publishes the zone set of a mission so remote dashboards can draw it.

Design:
- Inherits from BasePublisher (connection management)
- Formats ZoneSetMessage to JSON
- Retained by default: a dashboard subscribing late still gets the
  current zones of the mission

Message Flow:
    MissionZoneService → ZoneSetMessage → ZoneSetPublisher → MQTT Broker

Example:
    >>> from sora_mqtt import ZoneSetPublisher, create_logger
    >>> publisher = ZoneSetPublisher(
    ...     broker_host="localhost",
    ...     topic="sora/data/zones/mission-42",
    ...     logger=create_logger("publisher")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_zone_set(message)
"""

from typing import Any, Dict, Optional

from .base import BasePublisher
from ..logging import LogEvent, StructuredLogger
from ..schemas import ZoneSetMessage


class ZoneSetPublisher(BasePublisher):
    """Publisher for ZoneSetMessage instances."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "sora_zone_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        retain: bool = True
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.retain = retain

    def format_message(self, zone_set: ZoneSetMessage) -> Dict[str, Any]:
        """
        Format ZoneSetMessage to a JSON-compatible dict.

        Raises:
            ValueError: If zone_set cannot be serialized
        """
        try:
            formatted = zone_set.to_dict()
        except (AttributeError, TypeError, ValueError) as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize zone set message",
                exc_info=e,
                metadata={'mission_id': getattr(zone_set, 'mission_id', None)}
            )
            raise ValueError(f"Failed to format zone set message: {e}") from e

        self.logger.debug(
            event=LogEvent.ZONE_SET_SERIALIZED,
            message="Serialized zone set message",
            metadata={
                'mission_id': zone_set.mission_id,
                'zone_count': zone_set.zone_count,
                'skipped': len(zone_set.skipped)
            }
        )
        return formatted

    def publish_zone_set(self, zone_set: ZoneSetMessage) -> bool:
        """
        Publish a mission's zone set.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            message_data = self.format_message(zone_set)
        except ValueError:
            return False

        success = self.publish(message_data, retain=self.retain)
        if success:
            self.logger.info(
                event=LogEvent.ZONE_SET_PUBLISHED,
                message=f"Published {zone_set.zone_count} zones",
                metadata={
                    'mission_id': zone_set.mission_id,
                    'zone_count': zone_set.zone_count,
                    'labels': [zone.label for zone in zone_set.zones],
                    'topic': self.topic
                }
            )
        return success

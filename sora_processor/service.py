"""
Mission Zone Service - computes, renders and publishes a mission's SORA zones.

This module provides the MissionZoneService class which ties a mission
configuration to the zone engine, the snapshot renderer and the zone set
publisher.

Architecture:
- compute(): route + settings -> ZoneComposition (pure, cached per service)
- build_message(): ZoneComposition -> ZoneSetMessage
- render_snapshot(): ZoneComposition -> image (optionally written to disk)
- publish(): ZoneSetMessage -> MQTT (retained, per-mission topic)
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from sora_zone import SnapshotRenderer, ZoneComposition, compose_zones
from sora_zone.composer import filter_route
from sora_mqtt import ZoneSetMessage, ZoneSetPublisher, create_logger
from sora_processor.config import MissionConfig, MQTTConfig

logger = logging.getLogger(__name__)


def create_publisher(mission_id: str, mqtt_config: MQTTConfig) -> ZoneSetPublisher:
    """ZoneSetPublisher for a mission's zone topic."""
    return ZoneSetPublisher(
        broker_host=mqtt_config.broker,
        broker_port=mqtt_config.port,
        topic=mqtt_config.topic_for(mission_id),
        client_id=f"sora_zones_{mission_id}",
        logger=create_logger("publisher"),
        username=mqtt_config.username,
        password=mqtt_config.password,
        qos=mqtt_config.qos,
        retain=mqtt_config.retain,
    )


class MissionZoneService:
    """
    SORA zones of one mission.

    Usage:
        config = MissionConfig.from_yaml("mission.yaml")
        service = MissionZoneService(config)

        composition = service.compute()
        service.render_snapshot("snapshot.png")
        service.publish()
    """

    def __init__(
        self,
        config: MissionConfig,
        publisher: Optional[ZoneSetPublisher] = None,
        renderer_factory: Callable[..., SnapshotRenderer] = SnapshotRenderer,
    ):
        """
        Initialize the service.

        Args:
            config: Mission configuration
            publisher: Zone set publisher (default: built from config on publish)
            renderer_factory: Called with (width=, height=) to build a renderer
        """
        self.config = config
        self.publisher = publisher
        self.renderer_factory = renderer_factory
        self._composition: Optional[ZoneComposition] = None

        logger.info(
            f"MissionZoneService initialized for mission_id={config.mission_id} "
            f"({len(config.route)} route points)"
        )

    def compute(self) -> ZoneComposition:
        """Compose the mission's zones (computed once, then reused)."""
        if self._composition is None:
            self._composition = compose_zones(self.config.route, self.config.settings)
            logger.info(
                f"Computed {len(self._composition)} zones for {self.config.mission_id} "
                f"(mode={self._composition.mode}, skipped={len(self._composition.skipped)})"
            )
        return self._composition

    def build_message(self) -> ZoneSetMessage:
        return ZoneSetMessage.from_composition(self.config.mission_id, self.compute())

    def render_snapshot(self, output_path: Optional[Union[str, Path]] = None) -> np.ndarray:
        """
        Render the mission snapshot.

        Args:
            output_path: Image file to write (default: config.snapshot.output_path;
                nothing is written when both are None)

        Returns:
            BGR image

        Raises:
            ValueError: If the mission has neither route nor zones
        """
        snapshot = self.config.snapshot
        renderer = self.renderer_factory(width=snapshot.width, height=snapshot.height)
        frame = renderer.render(self.compute(), route=filter_route(self.config.route))

        path = output_path or snapshot.output_path
        if path is not None:
            renderer.save(path)
            logger.info(f"Snapshot for {self.config.mission_id} written to {path}")
        return frame

    def publish(self, timeout: float = 10.0) -> bool:
        """
        Publish the zone set, connecting the publisher first if needed.

        Returns:
            True if published successfully, False otherwise
        """
        if self.publisher is None:
            self.publisher = create_publisher(self.config.mission_id, self.config.mqtt_config)

        if not self.publisher.is_connected() and not self.publisher.connect(timeout=timeout):
            logger.error(
                f"Cannot publish zones for {self.config.mission_id}: "
                f"broker {self.publisher.broker} unreachable"
            )
            return False

        return self.publisher.publish_zone_set(self.build_message())

    def close(self) -> None:
        """Disconnect the publisher, if connected."""
        if self.publisher is not None and self.publisher.is_connected():
            self.publisher.disconnect()

"""
Test Zone Set Publishing (Without Real Broker)
==============================================

Tests the zone set message schema and the publish flow without requiring
a real MQTT broker, by replacing the paho client with a recording fake.

Usage:
    pytest test_zone_set_publisher.py
    python test_zone_set_publisher.py
"""

import json

import paho.mqtt.client as mqtt
import pytest

from sora_mqtt import (
    ZoneSetPublisher,
    create_logger,
)
from sora_mqtt.schemas import (
    SkippedZonePayload,
    Timestamp,
    ZonePayload,
    ZoneSetMessage,
)
from sora_zone import ZoneSettings, compose_zones

ROUTE = [(59.90, 10.70), (59.91, 10.72)]
TOPIC = "sora/data/zones/survey-0042"


class FakeResult:
    def __init__(self, rc):
        self.rc = rc


class FakeClient:
    """Stands in for paho's Client: records publish() calls."""

    def __init__(self, rc=mqtt.MQTT_ERR_SUCCESS):
        self.rc = rc
        self.published = []

    def publish(self, topic, payload, qos, retain):
        self.published.append({'topic': topic, 'payload': payload, 'qos': qos, 'retain': retain})
        return FakeResult(self.rc)


def make_publisher(client=None):
    publisher = ZoneSetPublisher(
        broker_host="localhost",
        topic=TOPIC,
        logger=create_logger("test"),
    )
    if client is not None:
        publisher.client = client
        publisher._connected.set()
    return publisher


def test_message_serialization():
    """ZoneSetMessage survives JSON serialization."""
    print("\n" + "=" * 60)
    print("TEST: Zone Set Serialization/Deserialization")
    print("=" * 60)

    composition = compose_zones(ROUTE, ZoneSettings(flight_geography_m=10))
    message = ZoneSetMessage.from_composition("survey-0042", composition)
    print(f"✓ Created ZoneSetMessage with {message.zone_count} zones")

    assert [z.label for z in message.zones] == ['ground_risk_buffer', 'contingency', 'flight_geography']
    assert message.mode == "corridor"
    assert message.get_zone('flight_geography').title == "Flight Geography"
    assert message.get_zone('ground_risk_buffer').height_m is None
    assert message.get_zone('missing') is None

    serialized = make_publisher().format_message(message)
    json_str = json.dumps(serialized)
    print(f"✓ Serialized to JSON ({len(json_str)} bytes)")

    data = json.loads(json_str)
    assert 'height_m' not in data['zones'][0]
    assert data['zones'][2]['height_m'] == 120
    assert data['zones'][2]['polygon'][0].keys() == {'lat', 'lng'}

    reconstructed = ZoneSetMessage.from_dict(data)
    assert reconstructed == message
    print("✓ Reconstructed message equals the original")


def test_skipped_zones_in_message():
    print("\n" + "=" * 60)
    print("TEST: Skipped Zones")
    print("=" * 60)

    message = ZoneSetMessage.from_composition("empty", compose_zones([]))
    assert message.zone_count == 0
    assert len(message.skipped) == 3
    assert message.skipped[0].reason.startswith("InvalidInputError")

    data = json.loads(json.dumps(message.to_dict()))
    assert ZoneSetMessage.from_dict(data).skipped == message.skipped
    print("✓ Skip reasons published with the zone set")

    disabled = ZoneSetMessage.from_composition("off", compose_zones(ROUTE, ZoneSettings(enabled=False)))
    assert disabled.mode is None
    assert disabled.zones == [] and disabled.skipped == []
    print("✓ Disabled zones publish an empty set")


def test_coarsest_single_point_message():
    """Two cap segments still give every ring a publishable polygon."""
    print("\n" + "=" * 60)
    print("TEST: Coarsest Single-Point Zone Set")
    print("=" * 60)

    composition = compose_zones([(59.90, 10.70)], ZoneSettings(cap_segments=2))
    assert composition.complete
    message = ZoneSetMessage.from_composition("hover", composition)
    assert message.zone_count == 3
    assert all(len(zone.polygon) >= 3 for zone in message.zones)
    print("✓ Single-point circles carry 4 vertices each")


def test_schema_validation():
    print("\n" + "=" * 60)
    print("TEST: Schema Validation")
    print("=" * 60)

    square = [{'lat': 59.9, 'lng': 10.7}, {'lat': 59.9, 'lng': 10.71}, {'lat': 59.91, 'lng': 10.71}]
    with pytest.raises(ValueError):
        ZonePayload(label="contingency", title="Contingency Area", cumulative_distance_m=50,
                    mode="corridor", polygon=square[:2])
    with pytest.raises(ValueError):
        ZonePayload(label="contingency", title="Contingency Area", cumulative_distance_m=-1,
                    mode="corridor", polygon=square)
    with pytest.raises(ValueError):
        ZoneSetMessage(schema_version="1.0", timestamp=Timestamp.now(), mission_id="")
    with pytest.raises(ValueError):
        ZoneSetMessage.from_dict({'schema_version': "1.0", 'mission_id': "m"})
    with pytest.raises(ValueError):
        SkippedZonePayload.from_dict({'label': "contingency", 'cumulative_distance_m': "far"})
    print("✓ Short polygons, negative distances and missing fields rejected")

    ts = Timestamp.now()
    assert ts.to_datetime().tzinfo is not None
    with pytest.raises(ValueError):
        Timestamp(value="yesterday").to_datetime()


def test_publish_without_broker():
    """Not connected: publish returns False, nothing raised."""
    print("\n" + "=" * 60)
    print("TEST: Publish While Disconnected")
    print("=" * 60)

    publisher = make_publisher()
    message = ZoneSetMessage.from_composition("survey-0042", compose_zones(ROUTE))

    assert not publisher.is_connected()
    assert publisher.publish_zone_set(message) is False
    stats = publisher.get_stats()
    assert stats == {
        'message_count': 0,
        'connected': False,
        'topic': TOPIC,
        'broker': "localhost:1883",
    }
    print("✓ publish_zone_set() returned False, stats untouched")

    with pytest.raises(ValueError):
        ZoneSetPublisher(broker_host="localhost", topic=TOPIC, logger=create_logger("test"), qos=3)


def test_publish_with_fake_client():
    print("\n" + "=" * 60)
    print("TEST: Publish Flow (fake client)")
    print("=" * 60)

    client = FakeClient()
    publisher = make_publisher(client)
    message = ZoneSetMessage.from_composition("survey-0042", compose_zones(ROUTE))

    assert publisher.publish_zone_set(message) is True
    assert len(client.published) == 1
    sent = client.published[0]
    assert sent['topic'] == TOPIC
    assert sent['qos'] == 1
    assert sent['retain'] is True
    assert ZoneSetMessage.from_dict(json.loads(sent['payload'])).mission_id == "survey-0042"
    assert publisher.get_stats()['message_count'] == 1
    print("✓ Retained, QoS 1, JSON payload on the mission topic")

    failing = make_publisher(FakeClient(rc=mqtt.MQTT_ERR_NO_CONN))
    assert failing.publish_zone_set(message) is False
    assert failing.get_stats()['message_count'] == 0
    print("✓ Broker error code: publish returns False")

    class Broken:
        mission_id = "broken"

        def to_dict(self):
            raise TypeError("not serializable")

    with pytest.raises(ValueError):
        publisher.format_message(Broken())
    assert publisher.publish_zone_set(Broken()) is False
    print("✓ Serialization failure: ValueError / False")


def main():
    """Run all tests."""
    print("\n🛩  sora_mqtt - Zone Set Publishing Tests")
    print("=" * 60)

    test_message_serialization()
    test_skipped_zones_in_message()
    test_coarsest_single_point_message()
    test_schema_validation()
    test_publish_without_broker()
    test_publish_with_fake_client()

    print("\n" + "=" * 60)
    print("✅ ALL PUBLISHER TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

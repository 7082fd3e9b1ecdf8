"""
Test MQTT Sighting Subscriber (Without Real Broker)
===================================================

Exercises payload decoding and the subscriber callbacks by simulating
message delivery, so no MQTT broker is needed.

Usage:
    pytest test_sighting_pubsub.py
"""

import queue
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from doorbell_mqtt import (
    DEFAULT_TOPIC,
    MalformedSightingError,
    SightingEvent,
    SightingSubscriber,
    Timestamp,
    TransportError,
    create_logger,
    parse_broker_address,
)


def make_subscriber(sink=None, **kwargs):
    return SightingSubscriber(
        broker_address="tcp://localhost:1883",
        sink=sink if sink is not None else queue.Queue(),
        logger=create_logger("test"),
        client_id="test-subscriber",
        **kwargs
    )


def test_sighting_from_payload():
    """Raw bytes are the identifier's text, untouched."""
    event = SightingEvent.from_payload(b"AA:BB:CC:DD:EE:FF", topic=DEFAULT_TOPIC)

    assert event.observed == "AA:BB:CC:DD:EE:FF"
    assert event.topic == "bluetooth/devices"
    assert event.received_at.to_datetime() is not None
    assert event.to_dict()['observed'] == "AA:BB:CC:DD:EE:FF"


def test_sighting_payload_not_normalized():
    event = SightingEvent.from_payload(b"aa-bb-cc-dd-ee-ff ")
    assert event.observed == "aa-bb-cc-dd-ee-ff "


@pytest.mark.parametrize("payload", [b"", b"\xff\xfe\xfd", "AA:BB:CC:DD:EE:FF"])
def test_malformed_payloads_rejected(payload):
    with pytest.raises(MalformedSightingError):
        SightingEvent.from_payload(payload)


def test_timestamp_roundtrip():
    ts = Timestamp.now()
    assert Timestamp.from_datetime(ts.to_datetime()) == ts

    with pytest.raises(ValueError):
        Timestamp("yesterday").to_datetime()


def test_parse_broker_address():
    assert parse_broker_address("tcp://broker.lan:1884").port == 1884
    assert parse_broker_address("broker.lan").port == 1883
    assert parse_broker_address("broker.lan:2000").host == "broker.lan"

    tls = parse_broker_address("ssl://broker.lan")
    assert tls.tls and tls.port == 8883 and tls.transport == "tcp"

    ws = parse_broker_address("ws://broker.lan/mqtt")
    assert ws.transport == "websockets" and ws.port == 80

    for bad in ["", "ftp://broker.lan", "tcp://:1883", "tcp://broker.lan:notaport"]:
        with pytest.raises(TransportError):
            parse_broker_address(bad)


def test_subscriber_queues_sightings():
    """Simulated delivery lands on the sink queue in order."""
    sink = queue.Queue()
    subscriber = make_subscriber(sink)

    subscriber._handle_payload(b"AA:BB:CC:DD:EE:FF", DEFAULT_TOPIC)
    subscriber._handle_payload(b"11:22:33:44:55:66", DEFAULT_TOPIC)

    assert sink.get_nowait().observed == "AA:BB:CC:DD:EE:FF"
    assert sink.get_nowait().observed == "11:22:33:44:55:66"
    assert subscriber.get_stats()['sightings_received'] == 2


def test_subscriber_on_message_callback():
    sink = queue.Queue()
    subscriber = make_subscriber(sink)

    msg = mqtt.MQTTMessage(topic=DEFAULT_TOPIC.encode())
    msg.payload = b"aa:bb:cc:dd:ee:ff"
    subscriber._on_message(subscriber.client, None, msg)

    event = sink.get_nowait()
    assert event.observed == "aa:bb:cc:dd:ee:ff"
    assert event.topic == DEFAULT_TOPIC


def test_subscriber_drops_malformed_payload():
    sink = queue.Queue()
    subscriber = make_subscriber(sink)

    subscriber._handle_payload(b"\xff\xfe", DEFAULT_TOPIC)
    subscriber._handle_payload(b"", DEFAULT_TOPIC)

    assert sink.empty()
    assert subscriber.get_stats()['sightings_malformed'] == 2


def test_subscriber_full_queue_drops():
    sink = queue.Queue(maxsize=1)
    subscriber = make_subscriber(sink)

    subscriber._handle_payload(b"AA:BB:CC:DD:EE:FF")
    subscriber._handle_payload(b"AA:BB:CC:DD:EE:FF")

    assert sink.qsize() == 1
    assert subscriber.get_stats()['sightings_dropped'] == 1


def test_on_connect_subscribes_every_time():
    """Each (re)connect resubscribes so delivery resumes after a reconnect."""
    subscriber = make_subscriber()
    client = MagicMock()
    success = ReasonCode(PacketTypes.CONNACK, "Success")

    subscriber._on_connect(client, None, None, success, None)
    subscriber._on_disconnect(client, None, None, ReasonCode(PacketTypes.DISCONNECT, "Unspecified error"), None)
    assert not subscriber.is_connected()
    subscriber._on_connect(client, None, None, success, None)

    assert client.subscribe.call_count == 2
    client.subscribe.assert_called_with(DEFAULT_TOPIC, qos=0)
    assert subscriber.is_connected()


def test_on_connect_refused_records_error():
    subscriber = make_subscriber()
    client = MagicMock()

    subscriber._on_connect(client, None, None, ReasonCode(PacketTypes.CONNACK, "Not authorized"), None)

    client.subscribe.assert_not_called()
    assert not subscriber.is_connected()
    assert "refused" in subscriber.startup_error


def test_on_subscribe_rejection_records_error():
    subscriber = make_subscriber()

    subscriber._on_subscribe(
        subscriber.client, None, 1,
        [ReasonCode(PacketTypes.SUBACK, "Unspecified error")], None
    )

    assert "rejected" in subscriber.startup_error


def test_connect_failure_returns_false(monkeypatch):
    subscriber = make_subscriber()

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(subscriber.client, "connect", refuse)

    assert subscriber.connect(timeout=0.1) is False
    assert not subscriber.is_running()
    # stop() on a subscriber that never ran is a no-op
    subscriber.stop()

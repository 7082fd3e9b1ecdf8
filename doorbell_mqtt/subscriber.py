"""
MQTT Sighting Subscriber
========================

Bounded Context: Message Consumption

This module provides the subscriber that receives beacon sightings from the
MQTT broker and hands them to the detection path.

Design:
- paho-mqtt network loop in its own background thread (loop_start)
- Sightings are pushed onto a queue.Queue; the consumer drains it on its
  own thread, so delivery callbacks return immediately
- Subscription is issued from on_connect, so every automatic reconnect
  resubscribes and delivery resumes without outside help
- Malformed payloads are logged and dropped

Architecture:
    MQTT Broker → SightingSubscriber → queue.Queue[SightingEvent] → IngestionLoop

Example:
    >>> import queue
    >>> from doorbell_mqtt import SightingSubscriber, create_logger
    >>>
    >>> sightings = queue.Queue()
    >>> subscriber = SightingSubscriber(
    ...     broker_address="tcp://localhost:1883",
    ...     sink=sightings,
    ...     logger=create_logger("subscriber"),
    ... )
    >>> if subscriber.connect():
    ...     event = sightings.get()
    >>> subscriber.stop()
"""

import os
import queue
import socket
import threading
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from .schemas import SightingEvent, MalformedSightingError
from .logging import StructuredLogger, LogEvent

DEFAULT_TOPIC = "bluetooth/devices"

# scheme -> (default port, transport, tls)
_SCHEMES = {
    'tcp': (1883, 'tcp', False),
    'mqtt': (1883, 'tcp', False),
    'ssl': (8883, 'tcp', True),
    'tls': (8883, 'tcp', True),
    'mqtts': (8883, 'tcp', True),
    'ws': (80, 'websockets', False),
    'wss': (443, 'websockets', True),
}


class TransportError(Exception):
    """Raised when the broker address is unusable."""
    pass


@dataclass(frozen=True)
class BrokerEndpoint:
    """Resolved broker address."""
    host: str
    port: int
    transport: str = 'tcp'
    tls: bool = False
    path: str = '/mqtt'

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def parse_broker_address(address: str) -> BrokerEndpoint:
    """
    Resolve a broker address such as ``tcp://broker.lan:1883``.

    A bare ``host`` or ``host:port`` is treated as ``tcp://``.

    Raises:
        TransportError: Unknown scheme, missing host or invalid port
    """
    if not address:
        raise TransportError("Broker address cannot be empty")

    if '://' not in address:
        address = f"tcp://{address}"

    parts = urlsplit(address)
    scheme = parts.scheme.lower()
    if scheme not in _SCHEMES:
        raise TransportError(
            f"Unsupported broker scheme '{scheme}'. "
            f"Must be one of {sorted(_SCHEMES)}"
        )

    try:
        port = parts.port
    except ValueError as e:
        raise TransportError(f"Invalid broker port in '{address}'") from e

    if not parts.hostname:
        raise TransportError(f"Broker address has no host: '{address}'")

    default_port, transport, tls = _SCHEMES[scheme]
    return BrokerEndpoint(
        host=parts.hostname,
        port=port or default_port,
        transport=transport,
        tls=tls,
        path=parts.path or '/mqtt',
    )


def default_client_id() -> str:
    """Client identifier unique per host and process."""
    return f"{socket.gethostname()}-{os.getpid()}"


class SightingSubscriber:
    """
    MQTT subscriber for beacon sightings.

    Attributes:
        endpoint: Resolved broker endpoint
        topic: Topic carrying sightings
        client_id: MQTT client identifier
        sink: Queue receiving SightingEvent instances
        logger: Structured logger instance

    Thread Safety:
        Callbacks run in the paho network thread. The only state they share
        with other threads is the sink queue (thread-safe) and counters
        guarded by _stats_lock.
    """

    def __init__(
        self,
        broker_address: str,
        sink: "queue.Queue[SightingEvent]",
        logger: StructuredLogger,
        topic: str = DEFAULT_TOPIC,
        client_id: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
        keepalive: int = 60
    ):
        """
        Initialize MQTT subscriber.

        Args:
            broker_address: Broker URL (tcp://, ssl://, ws://, ... or host:port)
            sink: Queue that receives decoded sightings
            logger: Structured logger instance
            topic: Topic to subscribe to (default: bluetooth/devices)
            client_id: MQTT client ID (default: <hostname>-<pid>)
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Quality of Service (default: 0, at-most-once)
            keepalive: Keepalive interval in seconds

        Raises:
            TransportError: If broker_address cannot be parsed
        """
        self.endpoint = parse_broker_address(broker_address)
        self.topic = topic
        self.client_id = client_id or default_client_id()
        self.sink = sink
        self.logger = logger
        self.qos = qos
        self.keepalive = keepalive

        # MQTT client setup
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            transport=self.endpoint.transport,
        )
        if self.endpoint.transport == 'websockets':
            self.client.ws_set_options(path=self.endpoint.path)
        if self.endpoint.tls:
            self.client.tls_set()
        if username:
            self.client.username_pw_set(username, password)
        self.client.reconnect_delay_set(min_delay=1, max_delay=120)

        # Callbacks
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_subscribe = self._on_subscribe
        self.client.on_message = self._on_message

        # State
        self._connected = threading.Event()
        self._ready = threading.Event()
        self._startup_error: Optional[str] = None
        self._running = False
        self._stats_lock = threading.Lock()
        self._message_count = {'received': 0, 'malformed': 0, 'dropped': 0}

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None
    ) -> None:
        """
        Callback when connection established.

        Subscribes to the sightings topic on every (re)connect.
        """
        if reason_code.is_failure:
            self._startup_error = f"broker refused connection: {reason_code}"
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})",
                metadata={'broker': str(self.endpoint)}
            )
            self._ready.set()
            return

        self._connected.set()
        client.subscribe(self.topic, qos=self.qos)

        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={'broker': str(self.endpoint), 'topic': self.topic}
        )

    def _on_subscribe(
        self,
        client: mqtt.Client,
        userdata: Any,
        mid: int,
        reason_code_list: List[Any],
        properties: Any = None
    ) -> None:
        """Callback when the broker acknowledges the subscription."""
        failures = [rc for rc in reason_code_list if rc.is_failure]
        if failures:
            self._startup_error = f"subscription to '{self.topic}' rejected: {failures[0]}"
            self.logger.error(
                event=LogEvent.MQTT_SUBSCRIBE_ERROR,
                message="Broker rejected subscription",
                metadata={'topic': self.topic, 'reason': str(failures[0])}
            )
        else:
            self.logger.info(
                event=LogEvent.MQTT_SUBSCRIBED,
                message="Subscribed to sightings topic",
                metadata={'topic': self.topic, 'qos': self.qos}
            )
        self._ready.set()

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        disconnect_flags: Any,
        reason_code: Any,
        properties: Any = None
    ) -> None:
        """
        Callback when disconnected from broker.

        Reconnection is left to paho's network loop.
        """
        self._connected.clear()
        if self._running:
            self.logger.warning(
                event=LogEvent.MQTT_DISCONNECTED,
                message="Lost connection to MQTT broker",
                metadata={'broker': str(self.endpoint), 'reason_code': str(reason_code)}
            )

    def _on_message(
        self,
        client: mqtt.Client,
        userdata: Any,
        msg: mqtt.MQTTMessage
    ) -> None:
        """Callback when message received."""
        self._handle_payload(msg.payload, msg.topic)

    def _handle_payload(self, payload: bytes, topic: Optional[str] = None) -> None:
        """
        Decode one payload and queue the resulting sighting.

        Args:
            payload: Raw message bytes (device identifier text)
            topic: Topic the message arrived on
        """
        try:
            event = SightingEvent.from_payload(payload, topic=topic)
        except MalformedSightingError as e:
            with self._stats_lock:
                self._message_count['malformed'] += 1
            self.logger.warning(
                event=LogEvent.SIGHTING_MALFORMED,
                message="Ignoring malformed sighting payload",
                metadata={'topic': topic, 'payload': repr(payload)},
                exc_info=e
            )
            return

        with self._stats_lock:
            self._message_count['received'] += 1

        self.logger.debug(
            event=LogEvent.SIGHTING_RECEIVED,
            message="Received beacon from device",
            metadata={'mac': event.observed}
        )

        try:
            self.sink.put_nowait(event)
        except queue.Full:
            with self._stats_lock:
                self._message_count['dropped'] += 1
            self.logger.warning(
                event=LogEvent.SIGHTING_DROPPED,
                message="Sighting queue full, dropping message",
                metadata={'mac': event.observed}
            )

    # ===== Lifecycle =====

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to the broker, start the network loop and wait until the
        subscription is acknowledged.

        Args:
            timeout: Seconds to wait for connect + subscribe

        Returns:
            True if subscribed, False otherwise (loop is stopped again)
        """
        try:
            self.client.connect(
                self.endpoint.host,
                self.endpoint.port,
                keepalive=self.keepalive
            )
        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': str(self.endpoint)}
            )
            return False

        self.client.loop_start()
        self._running = True

        if not self._ready.wait(timeout=timeout):
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Connection timeout",
                metadata={'broker': str(self.endpoint), 'timeout': timeout}
            )
            self.stop()
            return False

        if self._startup_error:
            self.stop()
            return False

        return True

    @property
    def startup_error(self) -> Optional[str]:
        """Reason the last connect() failed, if the broker gave one."""
        return self._startup_error

    def stop(self) -> None:
        """
        Disconnect and stop the network loop.

        Safe to call multiple times.
        """
        if not self._running:
            return

        self._running = False
        self.client.disconnect()
        self.client.loop_stop()
        self._connected.clear()

        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Subscriber stopped",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    def is_running(self) -> bool:
        """Check if the network loop is running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get subscriber statistics.

        Returns:
            Dictionary with message counts and connection status
        """
        with self._stats_lock:
            return {
                'sightings_received': self._message_count['received'],
                'sightings_malformed': self._message_count['malformed'],
                'sightings_dropped': self._message_count['dropped'],
                'connected': self._connected.is_set(),
                'running': self._running,
                'topic': self.topic,
                'broker': str(self.endpoint),
            }

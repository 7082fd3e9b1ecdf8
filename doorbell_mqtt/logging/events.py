"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)
- Searchable in log aggregators

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, sighting, target, alert, error
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - sighting.*: Inbound beacon sightings
    - target.*: Debounce decisions for the watched device
    - alert.*: Alert channel fan-out
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost or closed."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Subscription to the sightings topic acknowledged."""

    # ========== Sighting Events ==========
    SIGHTING_RECEIVED = "sighting.received"
    """Beacon sighting decoded from an MQTT message."""

    SIGHTING_MALFORMED = "sighting.malformed"
    """Payload could not be decoded to a device identifier."""

    SIGHTING_DROPPED = "sighting.dropped"
    """Sighting queue full, message discarded."""

    # ========== Target Events ==========
    TARGET_DETECTED = "target.detected"
    """Target device sighting accepted by the debounce gate."""

    TARGET_SUPPRESSED = "target.suppressed"
    """Target device sighting suppressed (inside cooldown window)."""

    # ========== Alert Events ==========
    ALERT_DISPATCHED = "alert.dispatched"
    """Alert channels invoked for an accepted detection."""

    ALERT_VISUAL_FAILED = "alert.visual_failed"
    """Desktop notification could not be raised."""

    ALERT_AUDIO_FAILED = "alert.audio_failed"
    """Audio cue could not be played."""

    # ========== Error Events ==========
    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_SUBSCRIBE_ERROR = "error.mqtt_subscribe"
    """Broker rejected the subscription."""


"""
Doorbell MQTT Communication Package
===================================

Bounded Context: Beacon Sighting Transport

This package receives Bluetooth beacon sightings that a fixed receiver
republishes over MQTT.

Architecture:
- schemas/: Immutable data structures (SightingEvent, Timestamp)
- subscriber: paho-mqtt consumer feeding a queue
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    Timestamp, SightingEvent, MalformedSightingError

Subscriber:
    SightingSubscriber, BrokerEndpoint, parse_broker_address,
    TransportError, DEFAULT_TOPIC

Logging:
    LogEvent, StructuredLogger, create_logger
"""

__version__ = "1.0.0"

# Schemas
from .schemas import (
    Timestamp,
    SightingEvent,
    MalformedSightingError,
)

# Subscriber
from .subscriber import (
    DEFAULT_TOPIC,
    BrokerEndpoint,
    SightingSubscriber,
    TransportError,
    parse_broker_address,
)

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas
    'Timestamp',
    'SightingEvent',
    'MalformedSightingError',
    # Subscriber
    'DEFAULT_TOPIC',
    'BrokerEndpoint',
    'SightingSubscriber',
    'TransportError',
    'parse_broker_address',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]

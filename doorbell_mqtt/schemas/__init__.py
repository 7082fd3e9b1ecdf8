"""
Doorbell MQTT Schemas
=====================

Bounded Context: Data Structures

Immutable, typed data structures for inbound MQTT messages.

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper

Sighting Types:
    SightingEvent: One observed device identifier
    MalformedSightingError: Payload could not be decoded
"""

from .common import Timestamp
from .sighting import SightingEvent, MalformedSightingError

__all__ = [
    'Timestamp',
    'SightingEvent',
    'MalformedSightingError',
]

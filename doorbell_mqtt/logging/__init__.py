"""
Structured Logging for Doorbell MQTT
====================================

Bounded Context: Observability

JSON-structured logging for the transport and detection path.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from doorbell_mqtt.logging import StructuredLogger, LogEvent
    >>> logger = StructuredLogger(component="subscriber")
    >>> logger.info(
    ...     event=LogEvent.SIGHTING_RECEIVED,
    ...     message="Received beacon from device",
    ...     metadata={'mac': 'AA:BB:CC:DD:EE:FF'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]

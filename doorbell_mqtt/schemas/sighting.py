"""
Sighting Schema
===============

Bounded Context: Beacon Sightings

A sighting is one MQTT message published by the Bluetooth receiver: the
payload is the full textual hardware address of the device it heard, with no
envelope or framing.

Types:
- SightingEvent: Immutable record of one observed device identifier
- MalformedSightingError: Payload is not a usable identifier
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .common import Timestamp


class MalformedSightingError(ValueError):
    """Raised when a payload cannot be interpreted as a device identifier."""
    pass


@dataclass(frozen=True)
class SightingEvent:
    """
    Immutable record of a single beacon sighting.

    Attributes:
        observed: Device identifier as published (e.g. "AA:BB:CC:DD:EE:FF")
        received_at: When this process received the message
        topic: MQTT topic the message arrived on

    Invariants:
        - observed is a non-empty string

    Example:
        >>> event = SightingEvent.from_payload(b"AA:BB:CC:DD:EE:FF")
        >>> event.observed
        'AA:BB:CC:DD:EE:FF'
    """
    observed: str
    received_at: Timestamp = field(default_factory=Timestamp.now)
    topic: Optional[str] = None

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.observed, str) or not self.observed:
            raise MalformedSightingError(
                f"Sighting identifier must be a non-empty string, got {self.observed!r}"
            )

    @classmethod
    def from_payload(
        cls,
        payload: bytes,
        topic: Optional[str] = None,
        received_at: Optional[Timestamp] = None
    ) -> 'SightingEvent':
        """Decode a raw MQTT payload.

        The payload bytes are the identifier's UTF-8 text. No trimming or
        separator normalization is applied.

        Raises:
            MalformedSightingError: Empty or non UTF-8 payload
        """
        try:
            observed = bytes(payload).decode('utf-8')
        except (TypeError, UnicodeDecodeError) as e:
            raise MalformedSightingError(f"Sighting payload is not valid UTF-8: {e}") from e

        return cls(
            observed=observed,
            received_at=received_at or Timestamp.now(),
            topic=topic
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Serialize to JSON-compatible dict."""
        return {
            'observed': self.observed,
            'received_at': self.received_at.to_dict(),
            'topic': self.topic,
        }

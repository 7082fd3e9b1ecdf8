"""
Configuration schema, version catdoorbell.github.com/v1alpha1.

Example YAML:
    apiVersion: catdoorbell.github.com/v1alpha1
    kind: Config
    broker:
      address: tcp://localhost:1883
      username: doorbell
      password: secret
    targetMAC: "AA:BB:CC:DD:EE:FF"
    detectionTimeout: 5m
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from doorbell_config.duration import parse_duration
from doorbell_config.types import ConfigError, TypeMeta, UnsupportedKindError

API_VERSION = "catdoorbell.github.com/v1alpha1"
KIND = "Config"

DEFAULT_DETECTION_TIMEOUT = timedelta(minutes=5)


@dataclass(frozen=True)
class BrokerConfig:
    """MQTT broker configuration."""

    # Address of the MQTT broker, e.g. tcp://localhost:1883
    address: str
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        """Validate broker configuration."""
        if not self.address:
            raise ConfigError("broker.address cannot be empty")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BrokerConfig":
        data = data or {}
        return cls(
            address=data.get("address", ""),
            username=data.get("username"),
            password=data.get("password"),
        )


@dataclass(frozen=True)
class Config:
    """
    Doorbell configuration.

    Immutable after construction (frozen dataclass).
    """

    broker: BrokerConfig
    # MAC address of the device to listen for
    target_mac: str
    # Minimum time between two alerts for the target device
    detection_timeout: timedelta = DEFAULT_DETECTION_TIMEOUT
    type_meta: TypeMeta = field(default_factory=lambda: TypeMeta(API_VERSION, KIND))

    def __post_init__(self):
        """Validate configuration."""
        if not self.target_mac:
            raise ConfigError("targetMAC cannot be empty")

        if self.detection_timeout < timedelta(0):
            raise ConfigError(
                f"detectionTimeout must not be negative, got {self.detection_timeout}"
            )

    def get_api_version(self) -> str:
        return API_VERSION

    def get_kind(self) -> str:
        return KIND

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Decode a v1alpha1 Config document.

        Raises:
            ConfigError: Missing or invalid fields
        """
        raw_timeout = data.get("detectionTimeout")
        try:
            detection_timeout = (
                DEFAULT_DETECTION_TIMEOUT
                if raw_timeout is None
                else parse_duration(raw_timeout)
            )
        except ValueError as e:
            raise ConfigError(f"invalid detectionTimeout: {e}") from e

        target_mac = data.get("targetMAC")
        if target_mac is not None and not isinstance(target_mac, str):
            raise ConfigError(
                f"targetMAC must be a string, got {target_mac!r} (quote the value in YAML)"
            )

        return cls(
            broker=BrokerConfig.from_dict(data.get("broker")),
            target_mac=target_mac or "",
            detection_timeout=detection_timeout,
            type_meta=TypeMeta(API_VERSION, KIND),
        )


def get_decoder_by_kind(kind: Optional[str]) -> Callable[[Dict[str, Any]], Any]:
    """
    Return the decoder for a kind within this api version.

    Raises:
        UnsupportedKindError: Unknown kind
    """
    if kind == KIND:
        return Config.from_dict
    raise UnsupportedKindError(API_VERSION, kind)

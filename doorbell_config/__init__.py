"""
doorbell_config - Versioned configuration for the cat doorbell.

Documents carry an apiVersion/kind header. The loader decodes the header,
selects the schema for that version and kind, decodes the body and migrates
it to the latest schema.

Usage:
    from doorbell_config import load
    config = load("~/.config/cat-doorbell/config.yaml")
    config.target_mac, config.detection_timeout, config.broker.address
"""

from doorbell_config.duration import parse_duration, format_duration
from doorbell_config.loader import LatestConfig, from_dict, from_yaml, load
from doorbell_config.types import (
    ConfigError,
    TypeMeta,
    UnsupportedKindError,
    UnsupportedVersionError,
)
from doorbell_config.v1alpha1 import API_VERSION, BrokerConfig, Config

__all__ = [
    "API_VERSION",
    "BrokerConfig",
    "Config",
    "ConfigError",
    "LatestConfig",
    "TypeMeta",
    "UnsupportedKindError",
    "UnsupportedVersionError",
    "format_duration",
    "from_dict",
    "from_yaml",
    "load",
    "parse_duration",
]

"""
Versioned configuration loader.

Reads a YAML document, resolves its apiVersion/kind header, decodes the body
with the matching schema and migrates the result to the latest schema.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, IO, Union

import yaml

from doorbell_config import v1alpha1
from doorbell_config.types import ConfigError, TypeMeta, UnsupportedVersionError

logger = logging.getLogger(__name__)

# Latest schema; consumers only ever see this type
LatestConfig = v1alpha1.Config

_VERSIONS: Dict[str, Callable[[Any], Callable[[Dict[str, Any]], Any]]] = {
    v1alpha1.API_VERSION: v1alpha1.get_decoder_by_kind,
}


def from_yaml(source: Union[str, bytes, IO]) -> LatestConfig:
    """
    Load configuration from YAML text or an open stream.

    Raises:
        UnsupportedVersionError: apiVersion not recognised
        UnsupportedKindError: kind not recognised for the apiVersion
        ConfigError: Malformed YAML or invalid field values
    """
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse configuration YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("configuration document must be a mapping")

    return from_dict(data)


def from_dict(data: Dict[str, Any]) -> LatestConfig:
    """Decode an already-parsed configuration mapping."""
    type_meta = TypeMeta.from_dict(data)

    get_decoder = _VERSIONS.get(type_meta.api_version)
    if get_decoder is None:
        raise UnsupportedVersionError(type_meta.api_version)

    decode = get_decoder(type_meta.kind)
    versioned = decode(data)

    return _migrate_to_latest(versioned)


def load(path: Union[str, Path]) -> LatestConfig:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigError: File cannot be read or document is invalid
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            conf = from_yaml(f)
    except OSError as e:
        raise ConfigError(f"failed to open configuration file {path}: {e}") from e

    logger.debug(f"Loaded configuration from {path} ({conf.type_meta.api_version})")
    return conf


def _migrate_to_latest(versioned: Any) -> LatestConfig:
    if isinstance(versioned, LatestConfig):
        # Already at the latest version
        return versioned
    raise UnsupportedVersionError(versioned.get_api_version())

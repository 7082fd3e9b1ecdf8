"""
Versioned configuration loader tests.

Usage:
    pytest test_config.py
"""

from datetime import timedelta

import pytest

from doorbell_config import (
    API_VERSION,
    ConfigError,
    UnsupportedKindError,
    UnsupportedVersionError,
    format_duration,
    from_yaml,
    load,
    parse_duration,
)

VALID = """
apiVersion: catdoorbell.github.com/v1alpha1
kind: Config
broker:
  address: tcp://localhost:1883
  username: doorbell
  password: secret
targetMAC: "AA:BB:CC:DD:EE:FF"
detectionTimeout: 5m
"""


def test_load_valid_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(VALID)

    config = load(path)

    assert config.target_mac == "AA:BB:CC:DD:EE:FF"
    assert config.detection_timeout == timedelta(minutes=5)
    assert config.broker.address == "tcp://localhost:1883"
    assert config.broker.username == "doorbell"
    assert config.broker.password == "secret"
    assert config.type_meta.api_version == API_VERSION
    assert config.get_kind() == "Config"


def test_default_detection_timeout():
    config = from_yaml(VALID.replace("detectionTimeout: 5m\n", ""))
    assert config.detection_timeout == timedelta(minutes=5)


def test_numeric_detection_timeout_is_seconds():
    config = from_yaml(VALID.replace("5m", "90"))
    assert config.detection_timeout == timedelta(seconds=90)


def test_unsupported_api_version():
    with pytest.raises(UnsupportedVersionError) as excinfo:
        from_yaml(VALID.replace("v1alpha1", "v9"))
    assert excinfo.value.api_version == "catdoorbell.github.com/v9"


def test_missing_api_version():
    with pytest.raises(UnsupportedVersionError):
        from_yaml("kind: Config\ntargetMAC: x\n")


def test_unsupported_kind():
    with pytest.raises(UnsupportedKindError):
        from_yaml(VALID.replace("kind: Config", "kind: Broker"))


@pytest.mark.parametrize("document", [
    VALID.replace('targetMAC: "AA:BB:CC:DD:EE:FF"', 'targetMAC: ""'),
    VALID.replace("address: tcp://localhost:1883", "address: ''"),
    VALID.replace("5m", "-5m"),
    VALID.replace("5m", "five minutes"),
    VALID.replace('"AA:BB:CC:DD:EE:FF"', "11:22:33"),
    "- just\n- a list\n",
    "broker: [unclosed",
])
def test_invalid_documents(document):
    with pytest.raises(ConfigError):
        from_yaml(document)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load(tmp_path / "nope.yaml")


@pytest.mark.parametrize("text, expected", [
    ("5m", timedelta(minutes=5)),
    ("1h30m", timedelta(hours=1, minutes=30)),
    ("1.5s", timedelta(seconds=1.5)),
    ("300ms", timedelta(milliseconds=300)),
    ("0", timedelta(0)),
    (45, timedelta(seconds=45)),
    (timedelta(seconds=3), timedelta(seconds=3)),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "m", "5 m", "5d", True, None])
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_format_duration():
    assert format_duration(timedelta(minutes=5)) == "5m"
    assert format_duration(timedelta(hours=1, minutes=30)) == "1h30m"
    assert format_duration(timedelta(0)) == "0s"

"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest
import yaml

from lgtv_volume.config import (
    DEFAULT_CONFIG,
    deep_merge,
    get_identity,
    load_config,
    normalize_mac,
    save_config,
    validate_config,
)
from lgtv_volume.config import loader

from .conftest import MOCK_HOST, MOCK_MAC


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep real config files and LGTV_* variables out of the tests."""
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [])
    for env_var in loader.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)


def test_defaults():
    config = load_config()

    assert config["tv"]["port"] == 3000
    assert config["audio"]["target_device"] == "LG Monitor"
    assert config["pipe"]["path"] == "/tmp/lgtv-pipe"
    assert config["pipe"]["mode"] == 0o666
    assert config["options"]["reconnect_interval"] == 5
    assert config["_loaded_from"] is None
    assert validate_config(config) == ["tv.host or tv.mac is required"]


def test_load_yaml(tmp_path):
    """Test YAML values override defaults and keep the rest."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "tv": {"host": MOCK_HOST, "mac": None},
        "audio": {"target_device": "LG TV SSCR2"},
    }))

    config = load_config(str(path))

    assert config["tv"]["host"] == MOCK_HOST
    assert config["tv"]["port"] == 3000
    assert config["audio"]["target_device"] == "LG TV SSCR2"
    assert config["_loaded_from"] == str(path)
    assert validate_config(config) == []
    assert DEFAULT_CONFIG["tv"]["host"] is None


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tv: [unclosed")

    config = load_config(str(path))

    assert config["_loaded_from"] is None
    assert config["tv"]["host"] is None


def test_env_overrides(tmp_path, monkeypatch):
    """Test LGTV_* variables take precedence over the file."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"tv": {"host": "10.0.0.1"}}))
    monkeypatch.setenv("LGTV_HOST", MOCK_HOST)
    monkeypatch.setenv("LGTV_PORT", "3001")
    monkeypatch.setenv("LGTV_SECURE", "yes")
    monkeypatch.setenv("LGTV_RECONNECT_INTERVAL", "2.5")
    monkeypatch.setenv("LGTV_PIPE", "/run/lgtv.pipe")

    config = load_config(str(path))

    assert config["tv"]["host"] == MOCK_HOST
    assert config["tv"]["port"] == 3001
    assert config["tv"]["secure"] is True
    assert config["options"]["reconnect_interval"] == 2.5
    assert config["pipe"]["path"] == "/run/lgtv.pipe"


def test_invalid_env_value_ignored(monkeypatch):
    monkeypatch.setenv("LGTV_PORT", "not-a-port")
    monkeypatch.setenv("LGTV_SECURE", "maybe")

    config = load_config()

    assert config["tv"]["port"] == 3000
    assert config["tv"]["secure"] is False


def test_save_config_round_trip(tmp_path):
    config = deep_merge(load_config(), {"tv": {"mac": MOCK_MAC}})
    path = tmp_path / "out" / "config.yaml"

    assert save_config(config, path) is True

    saved = yaml.safe_load(path.read_text())
    assert "_loaded_from" not in saved
    assert load_config(str(path))["tv"]["mac"] == MOCK_MAC


def test_deep_merge_ignores_none():
    merged = deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": None, "c": 3}, "d": 4})
    assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


def test_validate_config_errors(config):
    config["tv"]["mac"] = "not-a-mac"
    config["audio"]["target_device"] = ""
    config["options"]["reconnect_interval"] = 0
    config["pairing"]["timeout"] = -1

    errors = validate_config(config)

    assert "tv.mac is not a valid MAC address: not-a-mac" in errors
    assert "audio.target_device is required" in errors
    assert "options.reconnect_interval must be a positive number" in errors
    assert "pairing.timeout must be a positive number" in errors


def test_mac_only_config_is_valid(config):
    config["tv"]["host"] = None
    assert validate_config(config) == []


@pytest.mark.parametrize(
    ("mac", "expected"),
    [
        ("3C:F0:83:9E:6A:2C", MOCK_MAC),
        ("3c-f0-83-9e-6a-2c", MOCK_MAC),
        ("3cf0839e6a2c", MOCK_MAC),
        ("3c:f0:8:9e:6a:2c", "3c:f0:08:9e:6a:2c"),
        ("garbage", "garbage"),
    ],
)
def test_normalize_mac(mac, expected):
    assert normalize_mac(mac) == expected


def test_get_identity(config):
    config["tv"]["mac"] = "3C-F0-83-9E-6A-2C"
    identity = get_identity(config)

    assert identity.host == MOCK_HOST
    assert identity.hardware_id == MOCK_MAC
    assert identity.port == 3000
    assert identity.store_key == MOCK_MAC

    config["tv"]["mac"] = None
    assert get_identity(config).store_key == MOCK_HOST

"""Configuration loading: defaults, then a YAML file, then the environment."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import DEFAULT_CONFIG, deep_merge

_LOGGER = logging.getLogger(__name__)

# Searched after an explicit --config path, first hit wins
CONFIG_SEARCH_PATHS = [
    Path("config.yaml"),
    Path.home() / ".config" / "lgtv_volume" / "config.yaml",
    Path("/etc/lgtv_volume/config.yaml"),
]


def _to_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value}")


# "ENV_VAR": ("section", "key", converter)
ENV_MAPPINGS = {
    "LGTV_HOST": ("tv", "host", str),
    "LGTV_MAC": ("tv", "mac", str),
    "LGTV_PORT": ("tv", "port", int),
    "LGTV_SECURE": ("tv", "secure", _to_bool),
    "LGTV_TARGET_DEVICE": ("audio", "target_device", str),
    "LGTV_PROBE_COMMAND": ("audio", "probe_command", str),
    "LGTV_PIPE": ("pipe", "path", str),
    "LGTV_KEY_FILE": ("pairing", "key_file", str),
    "LGTV_PAIRING_TIMEOUT": ("pairing", "timeout", float),
    "LGTV_RECONNECT_INTERVAL": ("options", "reconnect_interval", float),
    "LOG_LEVEL": ("options", "log_level", str),
    "LOG_FILE": ("options", "log_file", str),
}


def find_config_file(config_path: Optional[str] = None) -> Optional[Path]:
    """Return the first existing YAML config file, if any."""
    candidates = list(CONFIG_SEARCH_PATHS)
    if config_path:
        candidates.insert(0, Path(config_path).expanduser())

    for path in candidates:
        if path.suffix in (".yaml", ".yml") and path.is_file():
            return path
    return None


def read_config_file(path: Path) -> Optional[Dict[str, Any]]:
    """Parse one YAML file; None if it cannot be used."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        _LOGGER.warning("Failed to load %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        _LOGGER.warning("Ignoring %s: top level must be a mapping", path)
        return None
    return data


def env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    """Collect config values set through environment variables.

    Values that fail conversion are logged and skipped.
    """
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Dict[str, Any]] = {}

    for env_var, (section, key, converter) in ENV_MAPPINGS.items():
        raw = environ.get(env_var)
        if raw is None:
            continue
        try:
            overrides.setdefault(section, {})[key] = converter(raw)
        except ValueError as e:
            _LOGGER.warning("Invalid env var %s=%s: %s", env_var, raw, e)

    return overrides


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Build the effective configuration.

    Args:
        config_path: Explicit path to a YAML file, tried before the
            default search locations

    Returns:
        Complete configuration dict; ``_loaded_from`` names the file used
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    loaded_from = None

    path = find_config_file(config_path)
    if path is not None:
        data = read_config_file(path)
        if data is not None:
            config = deep_merge(config, data)
            loaded_from = str(path)
            _LOGGER.info("Loaded config from %s", path)
    elif config_path:
        _LOGGER.warning("Config file %s not found, using defaults", config_path)

    config = deep_merge(config, env_overrides())
    config["_loaded_from"] = loaded_from
    return config


def save_config(config: Dict[str, Any], path: Union[str, Path, None] = None) -> bool:
    """Write configuration as YAML, without internal ``_`` keys.

    Returns:
        True if the file was written
    """
    path = Path(path or "config.yaml").expanduser()
    data = {k: v for k, v in config.items() if not k.startswith("_")}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        _LOGGER.error("Failed to save config: %s", e)
        return False

    _LOGGER.info("Saved config to %s", path)
    return True

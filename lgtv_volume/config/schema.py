"""Configuration schema, defaults, and validation."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_KEY_FILE,
    DEFAULT_PAIRING_TIMEOUT,
    DEFAULT_PIPE_MODE,
    DEFAULT_PIPE_PATH,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_SEND_TIMEOUT,
    DEFAULT_TARGET_DEVICE,
    DEFAULT_CLIENT_NAME,
)


@dataclass(frozen=True)
class TelevisionIdentity:
    """Where to find the TV and which pairing key belongs to it."""
    host: Optional[str]
    hardware_id: Optional[str]
    port: int = DEFAULT_PORT
    secure: bool = False

    @property
    def store_key(self) -> str:
        """Key used for the pairing store (MAC when known, else host)."""
        if self.hardware_id:
            return normalize_mac(self.hardware_id)
        return self.host or ""


DEFAULT_CONFIG: Dict[str, Any] = {
    # Television - host may be omitted and resolved from mac via ARP
    "tv": {
        "host": None,
        "mac": None,
        "port": DEFAULT_PORT,
        "secure": False,
        "client_name": DEFAULT_CLIENT_NAME,
    },

    # Active audio device detection
    "audio": {
        "target_device": DEFAULT_TARGET_DEVICE,
        "probe_command": None,       # None = search for get_audio_device helper
        "probe_timeout": DEFAULT_PROBE_TIMEOUT,
    },

    # Named pipe written by the key remapper
    "pipe": {
        "path": DEFAULT_PIPE_PATH,
        "mode": DEFAULT_PIPE_MODE,
    },

    "pairing": {
        "key_file": DEFAULT_KEY_FILE,
        "timeout": DEFAULT_PAIRING_TIMEOUT,
    },

    "options": {
        "reconnect_interval": DEFAULT_RECONNECT_INTERVAL,
        "send_timeout": DEFAULT_SEND_TIMEOUT,
        "ping_interval": DEFAULT_PING_INTERVAL,
        "ping_timeout": DEFAULT_PING_TIMEOUT,
        "log_level": "INFO",
        "log_file": None,
    },
}


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif value is not None:  # Don't override with None
            result[key] = value
    return result


def validate_config(config: Dict) -> List[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    tv = config.get("tv", {})
    if not tv.get("host") and not tv.get("mac"):
        errors.append("tv.host or tv.mac is required")
    if tv.get("mac") and len(_mac_octets(tv["mac"])) != 6:
        errors.append(f"tv.mac is not a valid MAC address: {tv['mac']}")

    if not config.get("audio", {}).get("target_device"):
        errors.append("audio.target_device is required")

    if not config.get("pipe", {}).get("path"):
        errors.append("pipe.path is required")

    options = config.get("options", {})
    for key in ("reconnect_interval", "send_timeout"):
        value = options.get(key)
        if not isinstance(value, (int, float)) or value <= 0:
            errors.append(f"options.{key} must be a positive number")

    timeout = config.get("pairing", {}).get("timeout")
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("pairing.timeout must be a positive number")

    return errors


def get_identity(config: Dict) -> TelevisionIdentity:
    """Build the TV identity from the ``tv`` section."""
    tv = config.get("tv", {})
    return TelevisionIdentity(
        host=tv.get("host"),
        hardware_id=normalize_mac(tv["mac"]) if tv.get("mac") else None,
        port=tv.get("port", DEFAULT_PORT),
        secure=bool(tv.get("secure", False)),
    )


def _mac_octets(mac: str) -> List[int]:
    parts = mac.replace("-", ":").split(":")
    if len(parts) == 1 and len(mac) == 12:
        parts = [mac[i:i+2] for i in range(0, 12, 2)]
    try:
        return [int(p, 16) for p in parts if p != ""]
    except ValueError:
        return []


def normalize_mac(mac: str) -> str:
    """Normalize a MAC address to lowercase, colon separated, zero padded.

    ``arp`` on macOS prints octets without leading zeros (``3c:f0:8:9e:6a:2c``),
    so comparisons are done on the normalized form.

    Args:
        mac: MAC address in any common notation

    Returns:
        MAC address like ``3c:f0:08:9e:6a:2c``, or the input unchanged if
        it cannot be parsed
    """
    octets = _mac_octets(mac)
    if len(octets) != 6 or any(o > 0xFF for o in octets):
        return mac
    return ":".join(f"{o:02x}" for o in octets)

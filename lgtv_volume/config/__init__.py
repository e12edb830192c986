"""Configuration management for LG TV volume control.

Provides:
- YAML-based configuration with environment variable overrides
- The immutable TV identity built from configuration
- Pairing key storage
- Single source of truth for all constants
"""

from .constants import (
    DEFAULT_PORT,
    DEFAULT_SECURE_PORT,
    DEFAULT_PIPE_PATH,
    DEFAULT_PIPE_MODE,
    DEFAULT_TARGET_DEVICE,
    PROBE_HELPER_NAME,
    PROBE_HELPER_PATHS,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_KEY_FILE,
    DEFAULT_PAIRING_TIMEOUT,
    DEFAULT_CLIENT_NAME,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_SEND_TIMEOUT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PING_TIMEOUT,
)

from .schema import (
    DEFAULT_CONFIG,
    TelevisionIdentity,
    deep_merge,
    validate_config,
    get_identity,
    normalize_mac,
)

from .loader import (
    load_config,
    save_config,
    CONFIG_SEARCH_PATHS,
)

from .storage import PairingStore


__all__ = [
    # Constants
    "DEFAULT_PORT",
    "DEFAULT_SECURE_PORT",
    "DEFAULT_PIPE_PATH",
    "DEFAULT_PIPE_MODE",
    "DEFAULT_TARGET_DEVICE",
    "PROBE_HELPER_NAME",
    "PROBE_HELPER_PATHS",
    "DEFAULT_PROBE_TIMEOUT",
    "DEFAULT_KEY_FILE",
    "DEFAULT_PAIRING_TIMEOUT",
    "DEFAULT_CLIENT_NAME",
    "DEFAULT_RECONNECT_INTERVAL",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_SEND_TIMEOUT",
    "DEFAULT_PING_INTERVAL",
    "DEFAULT_PING_TIMEOUT",
    # Schema
    "DEFAULT_CONFIG",
    "TelevisionIdentity",
    "deep_merge",
    "validate_config",
    "get_identity",
    "normalize_mac",
    # Loader
    "load_config",
    "save_config",
    "CONFIG_SEARCH_PATHS",
    # Storage
    "PairingStore",
]

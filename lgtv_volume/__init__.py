"""Route volume keys to an LG webOS TV while it is the active audio output.

Volume/mute events arrive on a named pipe. Each one is sent to the TV over
its SSAP websocket when the TV is the current output device, and left to the
operating system otherwise.
"""

__version__ = "0.3.0"

from .client import LGTVClient, SessionState
from .commands import ALL_EVENTS, CommandKind, VolumeCommand, parse_event
from .config import (
    DEFAULT_PIPE_PATH,
    DEFAULT_PORT,
    DEFAULT_TARGET_DEVICE,
    PairingStore,
    TelevisionIdentity,
    get_identity,
    load_config,
    validate_config,
)
from .discovery import resolve_ip_from_mac
from .errors import (
    LGTVError,
    ConnectionRefused,
    CredentialInvalid,
    NotReady,
    PairingError,
    PairingRejected,
    PairingTimeout,
    ProtocolError,
)
from .gateway import CommandGateway
from .pipe import EventPipe, send_event
from .probe import DeviceProbe
from .bridge import VolumeBridge

__all__ = [
    "LGTVClient",
    "SessionState",
    # Commands
    "ALL_EVENTS",
    "CommandKind",
    "VolumeCommand",
    "parse_event",
    # Config
    "DEFAULT_PIPE_PATH",
    "DEFAULT_PORT",
    "DEFAULT_TARGET_DEVICE",
    "PairingStore",
    "TelevisionIdentity",
    "get_identity",
    "load_config",
    "validate_config",
    # Discovery
    "resolve_ip_from_mac",
    # Errors
    "LGTVError",
    "ConnectionRefused",
    "CredentialInvalid",
    "NotReady",
    "PairingError",
    "PairingRejected",
    "PairingTimeout",
    "ProtocolError",
    # Service
    "CommandGateway",
    "EventPipe",
    "send_event",
    "DeviceProbe",
    "VolumeBridge",
]

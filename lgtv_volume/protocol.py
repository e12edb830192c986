"""webOS SSAP message framing.

The TV speaks JSON over a websocket. A session starts with a ``register``
message; without a client key the TV shows a prompt and, once accepted,
answers with a ``registered`` message carrying the new key. Commands are
``request`` messages addressed by ``ssap://`` URI.
"""

import json
import logging
from typing import Any, Dict, Optional, Type

from .config import DEFAULT_PORT, DEFAULT_SECURE_PORT
from .errors import CredentialInvalid, LGTVError, PairingRejected, ProtocolError

_LOGGER = logging.getLogger(__name__)

REGISTER_ID = "register_0"

MSG_REGISTER = "register"
MSG_REGISTERED = "registered"
MSG_REQUEST = "request"
MSG_RESPONSE = "response"
MSG_ERROR = "error"

PAIRING_PROMPT = "PROMPT"

# Only what volume control needs
PERMISSIONS = [
    "CONTROL_AUDIO",
    "READ_TV_CURRENT_TIME",
]


def ws_url(host: str, port: int = DEFAULT_PORT, secure: bool = False) -> str:
    """Build the SSAP websocket URL.

    Args:
        host: TV IP address
        port: Port; the default plain port is swapped for 3001 when secure
        secure: Use wss:// (required by newer firmware)
    """
    if secure:
        if port == DEFAULT_PORT:
            port = DEFAULT_SECURE_PORT
        return f"wss://{host}:{port}/"
    return f"ws://{host}:{port}/"


def build_manifest(client_name: str) -> Dict[str, Any]:
    """Application manifest shown to the TV during pairing."""
    return {
        "manifestVersion": 1,
        "appVersion": "1.0",
        "signed": {
            "appId": "com.lgtv.volume",
            "vendorId": "com.lgtv",
            "localizedAppNames": {"": client_name},
            "permissions": PERMISSIONS,
            "serial": "lgtv-volume",
        },
        "permissions": PERMISSIONS,
    }


def build_register(client_key: Optional[str], client_name: str) -> str:
    """Build the registration handshake.

    Args:
        client_key: Stored key to resume with, or None to request pairing
        client_name: Name displayed in the TV's pairing prompt

    Returns:
        JSON text to send
    """
    payload: Dict[str, Any] = {
        "forcePairing": False,
        "pairingType": PAIRING_PROMPT,
        "manifest": build_manifest(client_name),
    }
    if client_key:
        payload["client-key"] = client_key
    return json.dumps({"type": MSG_REGISTER, "id": REGISTER_ID, "payload": payload})


def build_request(msg_id: str, uri: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """Build a command request."""
    message: Dict[str, Any] = {"type": MSG_REQUEST, "id": msg_id, "uri": uri}
    if payload is not None:
        message["payload"] = payload
    return json.dumps(message)


def parse_message(raw: Any) -> Dict[str, Any]:
    """Decode one websocket frame.

    Raises:
        ProtocolError: if the frame is not a JSON object with a type
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    try:
        message = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid JSON from TV: {raw!r}") from e
    if not isinstance(message, dict) or "type" not in message:
        raise ProtocolError(f"Unexpected message from TV: {raw!r}")
    return message


def error_for(message: Dict[str, Any]) -> Type[LGTVError]:
    """Pick the exception class for an ``error`` message.

    The TV reports errors as text starting with an HTTP-like status, e.g.
    ``"403 User denied access"`` or ``"401 insufficient permissions"``.
    """
    text = str(message.get("error", ""))
    if text.startswith("401"):
        return CredentialInvalid
    if text.startswith("403") or "denied" in text.lower() or "cancel" in text.lower():
        return PairingRejected
    return ProtocolError

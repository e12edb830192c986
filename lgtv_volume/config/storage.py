"""Pairing key storage for persistent authentication.

Holds the single client key issued by the TV during pairing. The file is a
small JSON document tagged with the TV it belongs to; a bare key on one line
(the format written by earlier releases) is also accepted.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_KEY_FILE

_LOGGER = logging.getLogger(__name__)


class PairingStore:
    """Single-slot, file-backed storage of the TV client key."""

    def __init__(self, path: Union[str, Path, None] = None, device_id: Optional[str] = None):
        """Initialize pairing store.

        Args:
            path: Path to the key file. Defaults to ~/.lgtv_key
            device_id: TV identity the key belongs to (MAC or host). A stored
                key tagged with a different identity is treated as absent.
        """
        self.path = Path(path or DEFAULT_KEY_FILE).expanduser()
        self.device_id = device_id

    def _read(self) -> Optional[Dict[str, Any]]:
        """Read the raw record, or None if missing or unreadable."""
        try:
            text = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            _LOGGER.warning("Cannot read pairing key %s: %s", self.path, e)
            return None

        if not text:
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            # Legacy format: the key on a single line
            if "\n" in text or " " in text:
                _LOGGER.warning("Ignoring malformed pairing key file %s", self.path)
                return None
            return {"client_key": text}

        if not isinstance(data, dict) or not isinstance(data.get("client_key"), str):
            _LOGGER.warning("Ignoring malformed pairing key file %s", self.path)
            return None
        return data

    def load(self) -> Optional[str]:
        """Return the stored client key, or None if absent."""
        data = self._read()
        if data is None:
            return None

        stored_id = data.get("device_id")
        if stored_id and self.device_id and stored_id != self.device_id:
            _LOGGER.info("Stored key belongs to %s, not %s; ignoring", stored_id, self.device_id)
            return None

        return data["client_key"].strip() or None

    def save(self, client_key: str, host: Optional[str] = None):
        """Persist the client key.

        Written to a temporary file in the same directory and moved into
        place, so a crash never leaves a truncated key behind.

        Args:
            client_key: Key issued by the TV
            host: Address the TV was reached at (informational)
        """
        record = {
            "device_id": self.device_id,
            "client_key": client_key.strip(),
            "host": host,
            "saved_at": time.time(),
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        _LOGGER.info("Saved pairing key to %s", self.path)

    def clear(self):
        """Remove the stored key."""
        try:
            self.path.unlink()
            _LOGGER.info("Cleared pairing key %s", self.path)
        except FileNotFoundError:
            pass

    def status(self) -> Dict[str, Any]:
        """Describe the stored key without exposing it.

        Returns:
            Dict with has_key, device_id, host and saved_at
        """
        data = self._read() or {}
        return {
            "has_key": self.load() is not None,
            "path": str(self.path),
            "device_id": data.get("device_id"),
            "host": data.get("host"),
            "saved_at": data.get("saved_at"),
        }

"""Active audio output device query.

The name of the current output device comes from a small helper executable
(``get_audio_device``, a CoreAudio wrapper) that prints it on one line. It
runs on every key press, so it must stay fast and never raise.
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import DEFAULT_PROBE_TIMEOUT, PROBE_HELPER_PATHS

_LOGGER = logging.getLogger(__name__)


def find_probe_helper(candidates: Sequence[Path] = PROBE_HELPER_PATHS) -> Optional[Path]:
    """Return the first existing executable helper, if any."""
    for candidate in candidates:
        path = Path(candidate).expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
        if path.is_file() and os.access(path, os.X_OK):
            return path
    return None


class DeviceProbe:
    """Query the OS for the active output device name."""

    def __init__(
        self,
        command: Union[str, List[str], None] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
    ):
        """Initialize the probe.

        Args:
            command: Command to run (string is split shell-style). None
                searches the default helper locations on each query.
            timeout: Seconds before the query is abandoned
        """
        if isinstance(command, str):
            command = shlex.split(command)
        self.command = command
        self.timeout = timeout

    def _resolve_command(self) -> Optional[List[str]]:
        if self.command:
            return list(self.command)
        helper = find_probe_helper()
        return [str(helper)] if helper else None

    def active_device(self) -> Optional[str]:
        """Return the active output device name, or None if unknown."""
        cmd = self._resolve_command()
        if cmd is None:
            _LOGGER.debug("No audio device helper found")
            return None

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            _LOGGER.debug("Audio device query failed: %s", e)
            return None

        if result.returncode != 0:
            return None

        lines = result.stdout.strip().splitlines()
        name = lines[0].strip() if lines else ""
        return name or None

    __call__ = active_device

"""Volume commands accepted from the key remapper.

Each line written to the pipe names one action, e.g. ``volume_up``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class CommandKind(Enum):
    """Volume/mute actions forwarded to the TV."""
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    MUTE = "mute"
    UNMUTE = "unmute"


# SSAP endpoint and payload per action
_ENDPOINTS = {
    CommandKind.VOLUME_UP: ("ssap://audio/volumeUp", None),
    CommandKind.VOLUME_DOWN: ("ssap://audio/volumeDown", None),
    CommandKind.MUTE: ("ssap://audio/setMute", {"mute": True}),
    CommandKind.UNMUTE: ("ssap://audio/setMute", {"mute": False}),
}

# Alternative spellings seen from key remapper configs
_ALIASES = {
    "volumeup": CommandKind.VOLUME_UP,
    "vol_up": CommandKind.VOLUME_UP,
    "volumedown": CommandKind.VOLUME_DOWN,
    "vol_down": CommandKind.VOLUME_DOWN,
}


@dataclass(frozen=True)
class VolumeCommand:
    """One command to send to the TV."""
    kind: CommandKind

    @property
    def uri(self) -> str:
        return _ENDPOINTS[self.kind][0]

    @property
    def payload(self) -> Optional[Dict[str, Any]]:
        payload = _ENDPOINTS[self.kind][1]
        return dict(payload) if payload is not None else None


def parse_event(line: str) -> Optional[VolumeCommand]:
    """Map a pipe line to a command.

    Args:
        line: Raw event text, e.g. "volume_up" or "MUTE"

    Returns:
        VolumeCommand, or None if the line is not a known action
    """
    name = line.strip().lower().replace("-", "_")
    if not name:
        return None
    try:
        return VolumeCommand(CommandKind(name))
    except ValueError:
        kind = _ALIASES.get(name)
        return VolumeCommand(kind) if kind else None


ALL_EVENTS = [kind.value for kind in CommandKind]

"""Route volume key events to the TV or leave them to the OS.

A key event is forwarded only while the TV is the active audio output. In
every other case (other output, unknown output, TV unreachable) nothing is
done here, so the OS volume handling applies as usual.
"""

import logging
from typing import Callable, Optional, Union

from .client import LGTVClient
from .commands import VolumeCommand, parse_event
from .errors import LGTVError

_LOGGER = logging.getLogger(__name__)


class CommandGateway:
    """Decides per event whether the TV handles it."""

    def __init__(
        self,
        client: LGTVClient,
        probe: Callable[[], Optional[str]],
        target_device: str,
    ):
        """Initialize the gateway.

        Args:
            client: TV session client used for forwarding
            probe: Returns the active output device name (or None)
            target_device: Exact device name that routes events to the TV
        """
        self.client = client
        self.probe = probe
        self.target_device = target_device

    def tv_is_active_output(self) -> bool:
        """Query the active output now and compare it to the target."""
        device = self.probe()
        return device is not None and device == self.target_device

    async def handle_event(self, event: Union[str, VolumeCommand]) -> bool:
        """Handle one key event.

        Args:
            event: Raw pipe line or an already parsed command

        Returns:
            True if a command was written to the TV, False on passthrough
        """
        command = parse_event(event) if isinstance(event, str) else event
        if command is None:
            _LOGGER.warning("Ignoring unknown event: %r", event)
            return False

        if not self.tv_is_active_output():
            _LOGGER.debug("Passthrough %s (TV is not the active output)", command.kind.value)
            return False

        try:
            await self.client.send(command)
        except LGTVError as e:
            _LOGGER.debug("Dropped %s: %s", command.kind.value, e)
            return False

        return True

"""Main service: pipe events in, TV commands out."""

import asyncio
import logging
import signal
from typing import Callable, Optional

from .client import LGTVClient
from .config import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_PAIRING_TIMEOUT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_SEND_TIMEOUT,
    PairingStore,
    get_identity,
    validate_config,
)
from .gateway import CommandGateway
from .pipe import EventPipe
from .probe import DeviceProbe

logger = logging.getLogger(__name__)


def create_client(config: dict, **kwargs) -> LGTVClient:
    """Create a TV client from configuration."""
    identity = get_identity(config)
    options = config.get("options", {})
    pairing = config.get("pairing", {})

    store = PairingStore(pairing.get("key_file"), device_id=identity.store_key)

    return LGTVClient(
        identity,
        store,
        client_name=config.get("tv", {}).get("client_name") or DEFAULT_CLIENT_NAME,
        pairing_timeout=pairing.get("timeout") or DEFAULT_PAIRING_TIMEOUT,
        reconnect_interval=options.get("reconnect_interval") or DEFAULT_RECONNECT_INTERVAL,
        send_timeout=options.get("send_timeout") or DEFAULT_SEND_TIMEOUT,
        ping_interval=options.get("ping_interval", DEFAULT_PING_INTERVAL),
        ping_timeout=options.get("ping_timeout", DEFAULT_PING_TIMEOUT),
        **kwargs,
    )


class VolumeBridge:
    """Bridge between the key remapper's pipe and the TV."""

    def __init__(
        self,
        config: dict,
        client: Optional[LGTVClient] = None,
        probe: Optional[Callable[[], Optional[str]]] = None,
        pipe: Optional[EventPipe] = None,
    ):
        """Initialize the bridge.

        Args:
            config: Configuration dictionary
            client: TV client (built from config if None)
            probe: Active audio device query (built from config if None)
            pipe: Event source (built from config if None)
        """
        self.config = config
        audio = config.get("audio", {})
        pipe_config = config.get("pipe", {})

        self.client = client or create_client(config)
        self.probe = probe or DeviceProbe(audio.get("probe_command"), timeout=audio.get("probe_timeout"))
        self.pipe = pipe or EventPipe(pipe_config.get("path"), mode=pipe_config.get("mode"))
        self.gateway = CommandGateway(self.client, self.probe, audio.get("target_device"))

        self.running = False
        self._session_task: Optional[asyncio.Task] = None

    async def run(self):
        """Run until stop() is called or the pipe closes."""
        logger.info("Starting lgtv-volume bridge...")

        errors = validate_config(self.config)
        if errors:
            for error in errors:
                logger.error("Config error: %s", error)
            raise ValueError("Invalid configuration")

        self.running = True
        self._session_task = asyncio.ensure_future(self.client.run())

        try:
            await self.pipe.open()
            logger.info(
                "lgtv-volume bridge started (target device: %r)",
                self.gateway.target_device,
            )

            # One event at a time, in arrival order
            async for event in self.pipe.events():
                if not self.running:
                    break
                logger.debug("Event: %s", event)
                await self.gateway.handle_event(event)
        finally:
            await self._shutdown()

    def stop(self):
        """Stop accepting events and end the TV session."""
        if not self.running:
            return
        logger.info("Stopping lgtv-volume bridge...")
        self.running = False
        self.pipe.close()
        self.client.close()

    async def _shutdown(self):
        self.running = False
        self.pipe.close()
        self.client.close()
        if self._session_task is not None:
            await self._session_task
            self._session_task = None
        logger.info("lgtv-volume bridge stopped")

    async def _main(self):
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            logger.info("Received signal %s", signum)
            self.stop()

        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, signal_handler, signum)

        try:
            await self.run()
        finally:
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(signum)

    def run_forever(self):
        """Run the bridge until interrupted."""
        asyncio.run(self._main())

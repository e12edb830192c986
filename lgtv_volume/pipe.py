"""Named pipe the key remapper writes events into.

One event per line, e.g. ``echo volume_up > /tmp/lgtv-pipe``.
"""

import asyncio
import errno
import logging
import os
import stat
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from .config import DEFAULT_PIPE_MODE, DEFAULT_PIPE_PATH

_LOGGER = logging.getLogger(__name__)


class EventPipe:
    """Line-oriented reader for a FIFO."""

    def __init__(self, path: Union[str, Path] = DEFAULT_PIPE_PATH, mode: int = DEFAULT_PIPE_MODE):
        self.path = Path(path)
        self.mode = mode
        self._transport: Optional[asyncio.ReadTransport] = None
        self._reader: Optional[asyncio.StreamReader] = None

    def create(self):
        """Create the FIFO if needed.

        Raises:
            ValueError: the path exists but is not a FIFO
        """
        if self.path.exists():
            if not stat.S_ISFIFO(self.path.stat().st_mode):
                raise ValueError(f"{self.path} exists but is not a FIFO")
            _LOGGER.debug("Using existing FIFO %s", self.path)
            return

        os.mkfifo(self.path)
        # mkfifo honours the umask; writers run as other users
        os.chmod(self.path, self.mode)
        _LOGGER.info("Created FIFO %s", self.path)

    async def open(self):
        """Open the FIFO for reading.

        Opened read-write so that writers coming and going never cause EOF.
        """
        self.create()
        fd = os.open(self.path, os.O_RDWR | os.O_NONBLOCK)
        pipe_file = os.fdopen(fd, "rb", buffering=0)

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        try:
            transport, _ = await loop.connect_read_pipe(lambda: protocol, pipe_file)
        except BaseException:
            pipe_file.close()
            raise

        self._reader = reader
        self._transport = transport
        _LOGGER.info("Listening for events on %s", self.path)

    async def events(self) -> AsyncIterator[str]:
        """Yield non-empty lines until the pipe is closed."""
        if self._reader is None:
            await self.open()
        reader = self._reader

        while True:
            try:
                line = await reader.readline()
            except ValueError:
                # Line longer than the stream limit
                _LOGGER.warning("Discarding oversized event on %s", self.path)
                continue
            if not line:
                return
            text = line.decode("utf-8", errors="replace").strip()
            if text:
                yield text

    def close(self):
        """Stop reading; pending events() iteration ends."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        self._reader = None


def send_event(path: Union[str, Path], event: str) -> bool:
    """Write one event into the pipe (what the key remapper does).

    Returns:
        True if written, False if nobody is listening on the pipe
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
    except OSError as e:
        if e.errno in (errno.ENXIO, errno.ENOENT):
            return False
        raise
    try:
        os.write(fd, f"{event.strip()}\n".encode("utf-8"))
    finally:
        os.close(fd)
    return True

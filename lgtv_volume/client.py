"""LG webOS TV session client.

Keeps one authorized websocket session to the TV alive. Pairs when no client
key is stored, resumes with the stored key otherwise, and reconnects on a
fixed interval whenever the TV goes away.
"""

import asyncio
import itertools
import logging
import ssl
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from .commands import CommandKind, VolumeCommand
from .config import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_PAIRING_TIMEOUT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_SEND_TIMEOUT,
    PairingStore,
    TelevisionIdentity,
)
from .discovery import resolve_ip_from_mac
from .errors import (
    ConnectionRefused,
    CredentialInvalid,
    NotReady,
    PairingRejected,
    PairingTimeout,
    ProtocolError,
)
from .protocol import (
    MSG_ERROR,
    MSG_REGISTERED,
    MSG_RESPONSE,
    PAIRING_PROMPT,
    REGISTER_ID,
    build_register,
    build_request,
    error_for,
    parse_message,
    ws_url,
)

_LOGGER = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of the TV session."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    PAIRING = "pairing"
    READY = "ready"
    RECONNECTING = "reconnecting"


# Retry chatter while the TV is off
_QUIET_TRANSITIONS = {
    (SessionState.RECONNECTING, SessionState.CONNECTING),
    (SessionState.CONNECTING, SessionState.RECONNECTING),
}


def _insecure_ssl_context() -> ssl.SSLContext:
    # The TV presents a self-signed certificate
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class LGTVClient:
    """Client to control an LG webOS TV's volume over SSAP."""

    def __init__(
        self,
        identity: TelevisionIdentity,
        store: PairingStore,
        client_name: str = DEFAULT_CLIENT_NAME,
        pairing_timeout: float = DEFAULT_PAIRING_TIMEOUT,
        reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        ping_interval: Optional[float] = DEFAULT_PING_INTERVAL,
        ping_timeout: Optional[float] = DEFAULT_PING_TIMEOUT,
        on_state_change: Optional[Callable[[SessionState], None]] = None,
        on_pairing_prompt: Optional[Callable[[], None]] = None,
        resolver: Callable[[str], Optional[str]] = resolve_ip_from_mac,
        connector: Optional[Callable[..., Awaitable[Any]]] = None,
    ):
        """Initialize the LG TV client.

        Args:
            identity: TV address and hardware id
            store: Where the pairing key lives
            client_name: Name shown in the TV's pairing prompt
            pairing_timeout: Seconds to wait for the prompt to be accepted
            reconnect_interval: Seconds between connection attempts
            connect_timeout: Seconds allowed for opening the socket and for
                resuming with a stored key
            send_timeout: Upper bound for writing one command
            ping_interval: Keepalive ping interval (None disables)
            ping_timeout: Seconds without pong before the session is dropped
            on_state_change: Callback for state transitions
            on_pairing_prompt: Callback when the TV shows the pairing prompt
            resolver: Maps the hardware id to an IP when no host is configured
            connector: Opens the websocket (defaults to websockets.connect)
        """
        self.identity = identity
        self.client_name = client_name
        self.pairing_timeout = pairing_timeout
        self.reconnect_interval = reconnect_interval
        self.connect_timeout = connect_timeout
        self.send_timeout = send_timeout
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.on_state_change = on_state_change
        self.on_pairing_prompt = on_pairing_prompt

        self._store = store
        self._resolver = resolver
        self._connector = connector or websockets.connect

        self._state = SessionState.DISCONNECTED
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._ws: Optional[Any] = None
        self._host: Optional[str] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._message_ids = itertools.count(1)

        # Set when the TV answers a command with "401"
        self._credential_invalid = False
        # Set after a declined prompt; cleared once a key shows up in the store
        self._pairing_blocked = False

    # Properties (snapshot reads are safe)
    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        """True if commands can be sent."""
        return self._state is SessionState.READY

    @property
    def host(self) -> Optional[str]:
        """Address of the TV for the current session."""
        return self._host

    async def _set_state(self, state: SessionState):
        async with self._lock:
            self._transition(state)

    def _transition(self, state: SessionState):
        """Change state; caller holds the lock."""
        old = self._state
        if old is state:
            return
        self._state = state
        level = logging.DEBUG if (old, state) in _QUIET_TRANSITIONS else logging.INFO
        _LOGGER.log(level, "TV session: %s -> %s", old.value, state.value)
        if self.on_state_change:
            self.on_state_change(state)

    # Connection
    async def _resolve_host(self) -> str:
        if self.identity.host:
            return self.identity.host
        if not self.identity.hardware_id:
            raise ConnectionRefused("No TV host or MAC address configured")

        loop = asyncio.get_running_loop()
        host = await loop.run_in_executor(None, self._resolver, self.identity.hardware_id)
        if not host:
            raise ConnectionRefused(f"TV {self.identity.hardware_id} not found on the network")
        return host

    async def _open(self, url: str) -> Any:
        kwargs = {
            "open_timeout": self.connect_timeout,
            "ping_interval": self.ping_interval,
            "ping_timeout": self.ping_timeout,
        }
        if url.startswith("wss://"):
            kwargs["ssl"] = _insecure_ssl_context()
        try:
            return await asyncio.wait_for(self._connector(url, **kwargs), timeout=self.connect_timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise ConnectionRefused(f"Cannot connect to {url}: {e or type(e).__name__}") from e

    async def connect(self):
        """Connect to the TV and register, pairing if no key is stored.

        Raises:
            ConnectionRefused: the TV could not be reached
            PairingRejected: the pairing prompt was declined
            PairingTimeout: the pairing prompt was not answered in time
            CredentialInvalid: the TV refused the stored key outright
        """
        await self._set_state(SessionState.CONNECTING)

        host = await self._resolve_host()
        url = ws_url(host, self.identity.port, self.identity.secure)
        _LOGGER.debug("Connecting to %s", url)
        ws = await self._open(url)

        try:
            await self._register(ws, host)
        except BaseException:
            await self._close_socket(ws)
            raise

        async with self._lock:
            self._ws = ws
            self._host = host
            self._credential_invalid = False
            self._reader_task = asyncio.ensure_future(self._recv_loop(ws))
            self._transition(SessionState.READY)
        _LOGGER.info("Connected to TV at %s", host)

    async def _register(self, ws: Any, host: str) -> str:
        """Run the register handshake and return the active client key."""
        loop = asyncio.get_running_loop()
        client_key = self._store.load()
        pairing = client_key is None

        if pairing:
            await self._start_pairing()
        timeout = self.pairing_timeout if pairing else self.connect_timeout
        deadline = loop.time() + timeout

        try:
            await ws.send(build_register(client_key, self.client_name))
        except ConnectionClosed as e:
            raise ConnectionRefused(f"TV closed the connection: {e}") from e

        while True:
            remaining = deadline - loop.time()
            try:
                if remaining <= 0:
                    raise asyncio.TimeoutError
                raw = await asyncio.wait_for(ws.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                if pairing:
                    raise PairingTimeout(f"No answer to the pairing prompt within {self.pairing_timeout}s") from None
                raise ConnectionRefused("TV did not answer the registration") from None
            except ConnectionClosed as e:
                raise ConnectionRefused(f"TV closed the connection: {e}") from e

            try:
                message = parse_message(raw)
            except ProtocolError as e:
                _LOGGER.debug("%s", e)
                continue

            if message.get("id") != REGISTER_ID:
                continue

            msg_type = message["type"]
            payload = message.get("payload") or {}

            if msg_type == MSG_REGISTERED:
                new_key = payload.get("client-key")
                if not new_key:
                    raise ProtocolError("Registration answer carried no client key")
                if new_key != client_key:
                    self._save_key(new_key, host)
                    _LOGGER.info("Paired with TV at %s", host)
                return new_key

            if msg_type == MSG_RESPONSE and payload.get("pairingType") == PAIRING_PROMPT:
                if not pairing:
                    # TV fell back to prompting: the stored key is no longer valid
                    _LOGGER.warning("TV rejected the stored pairing key")
                    self._clear_key()
                    client_key = None
                    pairing = True
                    deadline = loop.time() + self.pairing_timeout
                    await self._start_pairing()
                continue

            if msg_type == MSG_ERROR:
                exc_class = error_for(message)
                if exc_class is CredentialInvalid:
                    self._clear_key()
                raise exc_class(str(message.get("error", "unknown error")))

    def _save_key(self, client_key: str, host: str):
        """Persist a new key; a write failure keeps the session going."""
        try:
            self._store.save(client_key, host=host)
        except OSError as e:
            _LOGGER.error("Could not save pairing key to %s: %s", self._store.path, e)

    def _clear_key(self) -> bool:
        """Drop the stored key. Returns False if the file could not be removed."""
        try:
            self._store.clear()
        except OSError as e:
            _LOGGER.error("Could not remove pairing key %s: %s", self._store.path, e)
            return False
        return True

    async def _start_pairing(self):
        await self._set_state(SessionState.PAIRING)
        _LOGGER.warning("Accept the pairing request on the TV screen")
        if self.on_pairing_prompt:
            self.on_pairing_prompt()

    async def _recv_loop(self, ws: Any):
        """Consume TV messages until the socket closes."""
        try:
            async for raw in ws:
                try:
                    message = parse_message(raw)
                except ProtocolError as e:
                    _LOGGER.debug("%s", e)
                    continue

                if message["type"] == MSG_ERROR:
                    if error_for(message) is CredentialInvalid:
                        _LOGGER.warning("TV no longer accepts our key: %s", message.get("error"))
                        self._credential_invalid = True
                        await ws.close()
                        return
                    _LOGGER.debug("TV error for %s: %s", message.get("id"), message.get("error"))
                else:
                    _LOGGER.debug("TV %s for %s", message["type"], message.get("id"))
        except ConnectionClosed as e:
            _LOGGER.info("Connection to TV lost: %s", e)

    async def _close_socket(self, ws: Any):
        try:
            await ws.close()
        except (OSError, WebSocketException) as e:
            _LOGGER.debug("Error closing TV socket: %s", e)

    async def _drop_session(self, next_state: SessionState):
        """Release the socket and move to next_state."""
        async with self._lock:
            ws, self._ws = self._ws, None
            reader, self._reader_task = self._reader_task, None
            self._transition(next_state)

        if reader is not None and not reader.done():
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)
        if ws is not None:
            await self._close_socket(ws)

    async def disconnect(self):
        """Close the session. Waits for an in-flight send to finish."""
        await self._drop_session(SessionState.DISCONNECTED)

    # Background lifecycle
    async def _sleep(self, seconds: float):
        """Sleep unless close() is called first."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _wait_session_end(self):
        reader = self._reader_task
        if reader is None:
            return
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({reader, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            await asyncio.gather(stop_task, return_exceptions=True)

        if reader.done() and not self._stop_event.is_set():
            await self._drop_session(SessionState.RECONNECTING)

    async def run(self):
        """Keep the session alive until close() is called.

        Every failure is logged and followed by another attempt after
        ``reconnect_interval`` seconds; nothing is raised to the caller.
        """
        _LOGGER.info("TV session task started (reconnect interval: %ss)", self.reconnect_interval)
        try:
            while not self._stop_event.is_set():
                if self._pairing_blocked:
                    if self._store.load() is None:
                        await self._sleep(self.reconnect_interval)
                        continue
                    self._pairing_blocked = False

                had_key = self._store.load() is not None
                try:
                    await self.connect()
                except CredentialInvalid as e:
                    if had_key and self._store.load() is None:
                        _LOGGER.warning("Stored pairing key rejected (%s); pairing again", e)
                        continue
                    _LOGGER.warning("TV refused registration: %s", e)
                except PairingRejected as e:
                    _LOGGER.error("Pairing was declined on the TV (%s). Run 'lgtv-volume pair' to try again.", e)
                    self._pairing_blocked = True
                except PairingTimeout as e:
                    _LOGGER.warning("%s; will ask again", e)
                except ConnectionRefused as e:
                    _LOGGER.debug("TV unavailable: %s", e)
                except ProtocolError as e:
                    _LOGGER.warning("Unexpected answer from TV: %s", e)
                else:
                    await self._wait_session_end()
                    if self._credential_invalid:
                        self._credential_invalid = False
                        if self._clear_key():
                            continue

                if self._stop_event.is_set():
                    break
                await self._set_state(SessionState.RECONNECTING)
                await self._sleep(self.reconnect_interval)
        finally:
            await self.disconnect()
            _LOGGER.info("TV session task stopped")

    def close(self):
        """Ask run() to stop; the backoff wait is interrupted immediately."""
        self._stop_event.set()

    # Commands
    async def send(self, command: VolumeCommand):
        """Write one command to the TV without waiting for an answer.

        Raises:
            NotReady: no session is established
            ConnectionRefused: the write failed or took longer than send_timeout
        """
        async with self._lock:
            ws = self._ws
            if self._state is not SessionState.READY or ws is None:
                raise NotReady(f"TV session is {self._state.value}")

            message = build_request(
                f"{command.kind.value}_{next(self._message_ids)}",
                command.uri,
                command.payload,
            )
            try:
                await asyncio.wait_for(ws.send(message), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                raise ConnectionRefused("Timed out writing to TV") from None
            except ConnectionClosed as e:
                raise ConnectionRefused(f"TV connection closed: {e}") from e

        _LOGGER.debug("Sent %s to TV", command.kind.value)

    async def volume_up(self):
        """Increase volume."""
        await self.send(VolumeCommand(CommandKind.VOLUME_UP))

    async def volume_down(self):
        """Decrease volume."""
        await self.send(VolumeCommand(CommandKind.VOLUME_DOWN))

    async def mute(self, muted: bool = True):
        """Mute or unmute."""
        await self.send(VolumeCommand(CommandKind.MUTE if muted else CommandKind.UNMUTE))

    # Async context manager
    async def __aenter__(self) -> "LGTVClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

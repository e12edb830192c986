"""Fixtures for LG TV volume tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from lgtv_volume.client import LGTVClient, SessionState
from lgtv_volume.config import DEFAULT_CONFIG, PairingStore, TelevisionIdentity, deep_merge
from lgtv_volume.protocol import REGISTER_ID

MOCK_HOST = "192.168.1.50"
MOCK_MAC = "3c:f0:83:9e:6a:2c"
MOCK_CLIENT_KEY = "a1b2c3d4e5f6"
MOCK_TARGET_DEVICE = "LG Monitor"

_CLOSED = object()
_DROPPED = object()


class FakeWebSocket:
    """One SSAP connection to FakeTV."""

    def __init__(self, tv: "FakeTV"):
        self.tv = tv
        self.sent: list[dict] = []
        self.closed = False
        self.stall_sends = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    def push(self, message: dict) -> None:
        self._incoming.put_nowait(json.dumps(message))

    def drop(self) -> None:
        """Simulate the network going away."""
        self._incoming.put_nowait(_DROPPED)

    async def send(self, raw: str) -> None:
        if self.closed:
            raise ConnectionClosedError(None, None)
        if self.stall_sends:
            await asyncio.Event().wait()
        message = json.loads(raw)
        self.sent.append(message)
        self.tv.handle(self, message)

    async def recv(self) -> Any:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        item = await self._incoming.get()
        if item is _CLOSED:
            raise ConnectionClosedOK(None, None)
        if item is _DROPPED:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.recv()
        except ConnectionClosedOK:
            raise StopAsyncIteration from None

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSED)


class FakeTV:
    """Scripted stand-in for the TV's SSAP websocket server.

    pairing: "approve", "deny" or "ignore" (prompt never answered)
    """

    def __init__(self, pairing: str = "approve", issued_key: str = MOCK_CLIENT_KEY):
        self.pairing = pairing
        self.issued_key = issued_key
        self.accepted_keys: set[str] = set()
        self.online = True
        self.revoked = False
        self.prompts = 0
        self.urls: list[str] = []
        self.sockets: list[FakeWebSocket] = []
        self.requests: list[dict] = []

    @property
    def socket(self) -> FakeWebSocket:
        return self.sockets[-1]

    async def connect(self, url: str, **kwargs: Any) -> FakeWebSocket:
        self.urls.append(url)
        if not self.online:
            raise ConnectionRefusedError(111, "Connection refused")
        ws = FakeWebSocket(self)
        self.sockets.append(ws)
        return ws

    def handle(self, ws: FakeWebSocket, message: dict) -> None:
        if message["type"] == "register":
            self._register(ws, message)
        elif message["type"] == "request":
            self.requests.append(message)
            if self.revoked:
                ws.push({"type": "error", "id": message["id"], "error": "401 insufficient permissions (not registered)", "payload": {}})
            else:
                ws.push({"type": "response", "id": message["id"], "payload": {"returnValue": True}})

    def _register(self, ws: FakeWebSocket, message: dict) -> None:
        key = message["payload"].get("client-key")
        if key and key in self.accepted_keys and not self.revoked:
            ws.push({"type": "registered", "id": REGISTER_ID, "payload": {"client-key": key}})
            return

        self.revoked = False
        self.prompts += 1
        ws.push({"type": "response", "id": REGISTER_ID, "payload": {"pairingType": "PROMPT", "returnValue": True}})
        if self.pairing == "approve":
            self.accepted_keys.add(self.issued_key)
            ws.push({"type": "registered", "id": REGISTER_ID, "payload": {"client-key": self.issued_key}})
        elif self.pairing == "deny":
            ws.push({"type": "error", "id": REGISTER_ID, "error": "403 User denied access", "payload": {}})


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll until predicate() is true."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def fake_tv() -> FakeTV:
    """A TV that approves pairing."""
    return FakeTV()


@pytest.fixture
def key_file(tmp_path: Path) -> Path:
    return tmp_path / "lgtv_key"


@pytest.fixture
def store(key_file: Path) -> PairingStore:
    return PairingStore(key_file, device_id=MOCK_MAC)


@pytest.fixture
def identity() -> TelevisionIdentity:
    return TelevisionIdentity(host=MOCK_HOST, hardware_id=MOCK_MAC)


@pytest.fixture
def make_client(fake_tv: FakeTV, identity: TelevisionIdentity, store: PairingStore):
    """Factory for clients wired to the fake TV with short timings."""
    def _make(**kwargs: Any) -> LGTVClient:
        options = {
            "pairing_timeout": 1.0,
            "reconnect_interval": 0.05,
            "connect_timeout": 1.0,
            "send_timeout": 0.2,
            "ping_interval": None,
            "ping_timeout": None,
            "connector": fake_tv.connect,
        }
        options.update(kwargs)
        return LGTVClient(options.pop("identity", identity), options.pop("store", store), **options)
    return _make


@pytest.fixture
def mock_client() -> Generator[MagicMock, None, None]:
    """A ready TV client that records sends."""
    mock_instance = MagicMock(spec=LGTVClient)
    mock_instance.send = AsyncMock()
    mock_instance.is_ready = True
    mock_instance.state = SessionState.READY
    yield mock_instance


@pytest.fixture
def config(tmp_path: Path) -> dict:
    """Full configuration pointing at temporary paths."""
    return deep_merge(DEFAULT_CONFIG, {
        "tv": {"host": MOCK_HOST, "mac": MOCK_MAC},
        "audio": {"target_device": MOCK_TARGET_DEVICE},
        "pipe": {"path": str(tmp_path / "lgtv-pipe")},
        "pairing": {"key_file": str(tmp_path / "lgtv_key"), "timeout": 1.0},
        "options": {"reconnect_interval": 0.05, "send_timeout": 0.2, "ping_interval": None, "ping_timeout": None},
    })

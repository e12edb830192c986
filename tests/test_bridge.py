"""Tests for the bridge service."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from lgtv_volume.bridge import VolumeBridge, create_client
from lgtv_volume.client import SessionState
from lgtv_volume.config import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_PAIRING_TIMEOUT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_SEND_TIMEOUT,
)
from lgtv_volume.pipe import send_event

from .conftest import MOCK_HOST, MOCK_MAC, wait_for


async def _deliver(path, event):
    """Write once the bridge has the pipe open."""
    await wait_for(lambda: send_event(path, event))


def test_create_client_from_config(config):
    """Test the client picks up identity, timings and key file."""
    client = create_client(config)

    assert client.identity.host == MOCK_HOST
    assert client.identity.store_key == MOCK_MAC
    assert client.reconnect_interval == 0.05
    assert client.pairing_timeout == 1.0
    assert str(client._store.path) == config["pairing"]["key_file"]


async def test_bridge_routes_events(config, make_client, fake_tv):
    """Test pipe events reach the TV only while it is the output."""
    client = make_client()
    probe = MagicMock(return_value="LG Monitor")
    bridge = VolumeBridge(config, client=client, probe=probe)
    pipe_path = config["pipe"]["path"]

    task = asyncio.create_task(bridge.run())
    await wait_for(lambda: client.is_ready)

    await _deliver(pipe_path, "volume_up")
    await wait_for(lambda: len(fake_tv.requests) == 1)
    assert fake_tv.requests[0]["uri"] == "ssap://audio/volumeUp"

    probe.return_value = "MacBook Pro Speakers"
    await _deliver(pipe_path, "volume_down")
    await wait_for(lambda: probe.call_count == 2)

    probe.return_value = "LG Monitor"
    await _deliver(pipe_path, "mute")
    await wait_for(lambda: len(fake_tv.requests) == 2)
    assert [r["uri"] for r in fake_tv.requests] == ["ssap://audio/volumeUp", "ssap://audio/setMute"]

    bridge.stop()
    await asyncio.wait_for(task, timeout=1.0)
    assert client.state is SessionState.DISCONNECTED
    assert not bridge.running


async def test_bridge_drops_events_while_tv_off(config, make_client, fake_tv):
    """Test events are dropped, not queued, while the TV is unreachable."""
    fake_tv.online = False
    client = make_client()
    probe = MagicMock(return_value="LG Monitor")
    bridge = VolumeBridge(config, client=client, probe=probe)
    pipe_path = config["pipe"]["path"]

    task = asyncio.create_task(bridge.run())
    await _deliver(pipe_path, "volume_up")
    await wait_for(lambda: probe.call_count == 1)

    fake_tv.online = True
    await wait_for(lambda: client.is_ready)
    await asyncio.sleep(0.05)
    assert fake_tv.requests == []

    bridge.stop()
    await asyncio.wait_for(task, timeout=1.0)


async def test_bridge_rejects_invalid_config(config, make_client):
    config["tv"]["host"] = None
    config["tv"]["mac"] = None
    client = make_client()
    client.run = MagicMock()
    bridge = VolumeBridge(config, client=client, probe=MagicMock())

    with pytest.raises(ValueError):
        await bridge.run()
    client.run.assert_not_called()


def test_stop_before_start_is_noop(config, make_client):
    bridge = VolumeBridge(config, client=make_client(), probe=MagicMock())
    bridge.stop()
    assert not bridge.running


def test_create_client_partial_config():
    """Test missing sections fall back to the client defaults."""
    client = create_client({"tv": {"host": MOCK_HOST}})

    assert client.identity.host == MOCK_HOST
    assert client.client_name == DEFAULT_CLIENT_NAME
    assert client.reconnect_interval == DEFAULT_RECONNECT_INTERVAL
    assert client.pairing_timeout == DEFAULT_PAIRING_TIMEOUT
    assert client.send_timeout == DEFAULT_SEND_TIMEOUT
    assert client.ping_interval == DEFAULT_PING_INTERVAL

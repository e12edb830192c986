#!/usr/bin/env python3
"""Command-line interface for LG TV volume control."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .bridge import VolumeBridge, create_client
from .commands import ALL_EVENTS, parse_event
from .config import PairingStore, get_identity, load_config, save_config, validate_config
from .errors import LGTVError, PairingRejected, PairingTimeout
from .pipe import send_event
from .probe import DeviceProbe


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from websockets
    logging.getLogger("websockets").setLevel(logging.WARNING)


def _report_invalid(config, stream=None) -> bool:
    """Print config errors; True if there were any."""
    stream = stream or sys.stderr
    problems = validate_config(config)
    for problem in problems:
        print(f"Config error: {problem}", file=stream)
    return bool(problems)


def cmd_run(args, config) -> int:
    """Run the bridge service."""
    if _report_invalid(config):
        return 1

    bridge = VolumeBridge(config)
    try:
        bridge.run_forever()
    except KeyboardInterrupt:
        pass
    return 0


async def _pair(config) -> int:
    client = create_client(config)
    client.on_pairing_prompt = lambda: print("Accept the connection request on the TV screen...")

    try:
        await client.connect()
    except PairingRejected:
        print("Pairing was declined on the TV", file=sys.stderr)
        return 1
    except PairingTimeout:
        print("Pairing prompt was not answered in time", file=sys.stderr)
        return 1
    except LGTVError as e:
        print(f"Failed to connect to TV: {e}", file=sys.stderr)
        return 1

    print(f"Paired with TV at {client.host}")
    await client.disconnect()
    return 0


def cmd_pair(args, config) -> int:
    """Pair with the TV once and store the key."""
    if args.host:
        config["tv"]["host"] = args.host
    if _report_invalid(config):
        return 1
    if args.force:
        identity = get_identity(config)
        PairingStore(config["pairing"]["key_file"], device_id=identity.store_key).clear()
    return asyncio.run(_pair(config))


def cmd_probe(args, config) -> int:
    """Print the active output device."""
    audio = config["audio"]
    probe = DeviceProbe(audio.get("probe_command"), timeout=audio.get("probe_timeout"))
    device = probe.active_device()
    if device is None:
        print("Active output: unknown")
        return 1

    match = device == audio["target_device"]
    print(f"Active output: {device}")
    print(f"Target device: {audio['target_device']} ({'match' if match else 'no match'})")
    return 0


def cmd_send(args, config) -> int:
    """Write an event into the pipe."""
    if parse_event(args.event) is None:
        print(f"Unknown event '{args.event}'. Use one of: {', '.join(ALL_EVENTS)}", file=sys.stderr)
        return 1

    path = config["pipe"]["path"]
    if not send_event(path, args.event):
        print(f"Nobody is listening on {path}", file=sys.stderr)
        return 1
    return 0


def cmd_config(args, config) -> int:
    """Validate, show or write configuration."""
    if args.init:
        path = Path(args.init).expanduser()
        if path.exists():
            print(f"{path} already exists", file=sys.stderr)
            return 1
        if not save_config(config, path):
            return 1
        print(f"Wrote {path}")
        return 0

    if _report_invalid(config, sys.stdout):
        print("Configuration is INVALID")
        return 1

    identity = get_identity(config)
    print("Configuration is valid")
    print(f"  Loaded from: {config.get('_loaded_from') or 'defaults'}")
    print(f"  TV Host: {identity.host or 'resolve from MAC'}:{identity.port}")
    print(f"  TV MAC: {identity.hardware_id or 'not set'}")
    print(f"  Target device: {config['audio']['target_device']}")
    print(f"  Pipe: {config['pipe']['path']}")
    print(f"  Key file: {config['pairing']['key_file']}")
    print(f"  Reconnect interval: {config['options']['reconnect_interval']}s")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="lgtv-volume",
        description="Route volume keys to an LG TV while it is the active audio output",
    )
    parser.add_argument("-c", "--config", help="Path to config file (default: config.yaml)")
    parser.add_argument("-v", "--version", action="version", version=f"lgtv-volume {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the bridge service (default)")

    pair_parser = subparsers.add_parser("pair", help="Pair with the TV and store the key")
    pair_parser.add_argument("--host", help="TV IP address (overrides config)")
    pair_parser.add_argument("--force", action="store_true", help="Discard the stored key first")

    subparsers.add_parser("probe", help="Show the active audio output device")

    send_parser = subparsers.add_parser("send", help="Write an event into the pipe")
    send_parser.add_argument("event", help=f"One of: {', '.join(ALL_EVENTS)}")

    config_parser = subparsers.add_parser("config", help="Validate or create configuration")
    config_parser.add_argument("--init", metavar="PATH", help="Write the current configuration to PATH")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    options = config.get("options", {})
    log_level = "DEBUG" if args.debug else options.get("log_level", "INFO")
    setup_logging(log_level, options.get("log_file") if args.command in (None, "run") else None)

    commands = {
        None: cmd_run,
        "run": cmd_run,
        "pair": cmd_pair,
        "probe": cmd_probe,
        "send": cmd_send,
        "config": cmd_config,
    }
    return commands[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())

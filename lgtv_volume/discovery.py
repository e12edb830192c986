"""Locate the TV on the local network from its MAC address."""

import logging
import re
import subprocess
from typing import Optional

from .config import normalize_mac

_LOGGER = logging.getLogger(__name__)

# "? (10.0.0.125) at 3c:f0:83:9e:6a:2c on en0 ifscope [ethernet]"
_ARP_LINE = re.compile(r"\(([^)]+)\) at ([0-9a-fA-F:-]+)")


def parse_arp_table(output: str, mac_address: str) -> Optional[str]:
    """Find the IP for a MAC address in ``arp -an`` output.

    Args:
        output: Text printed by ``arp -an``
        mac_address: MAC address to look for

    Returns:
        IP address if listed, None otherwise
    """
    target = normalize_mac(mac_address)
    for line in output.splitlines():
        match = _ARP_LINE.search(line)
        if match and normalize_mac(match.group(2)) == target:
            return match.group(1)
    return None


def resolve_ip_from_mac(mac_address: str, timeout: float = 3.0) -> Optional[str]:
    """Look up the TV's IP address in the system ARP table.

    Args:
        mac_address: TV's MAC address
        timeout: Seconds to wait for ``arp``

    Returns:
        IP address if found, None otherwise
    """
    try:
        result = subprocess.run(
            ["arp", "-an"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        _LOGGER.debug("arp lookup failed: %s", e)
        return None

    ip = parse_arp_table(result.stdout, mac_address)
    if ip is None:
        _LOGGER.debug("MAC %s not in ARP table", mac_address)
    return ip

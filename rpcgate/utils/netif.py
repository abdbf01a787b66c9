"""Local network interface addresses for the whitelist.

Each supported platform family designates one interface whose IPv4 addresses
are added to every effective whitelist (see LOCAL_INTERFACE_BY_PLATFORM).
"""

from __future__ import annotations

import socket
import sys
from typing import Optional

import psutil

from rpcgate.constants import LOCAL_INTERFACE_BY_PLATFORM
from rpcgate.utils.logger import get_logger

logger = get_logger(__name__)


def platform_family(platform: Optional[str] = None) -> str:
    """Normalise sys.platform to a family key ("linux2" → "linux", "cygwin" stays)."""
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return "linux"
    return platform


def interface_for_platform(platform: Optional[str] = None) -> Optional[str]:
    """Return the designated interface name, or None for an unrecognised platform."""
    return LOCAL_INTERFACE_BY_PLATFORM.get(platform_family(platform))


def local_ipv4_addresses(platform: Optional[str] = None) -> list[str]:
    """IPv4 addresses bound to the platform's designated interface.

    Returns [] for unknown platforms, a missing interface, or a psutil failure.
    """
    iface = interface_for_platform(platform)
    if iface is None:
        logger.debug("No designated interface for platform", platform=platform_family(platform))
        return []

    try:
        all_addrs = psutil.net_if_addrs()
    except (OSError, RuntimeError, psutil.Error) as exc:
        logger.warning(
            "Could not enumerate network interfaces — no local addresses added",
            interface=iface,
            error=str(exc),
        )
        return []

    addrs = all_addrs.get(iface)
    if not addrs:
        logger.debug("Designated interface not present", interface=iface)
        return []

    return [a.address for a in addrs if a.family == socket.AF_INET]

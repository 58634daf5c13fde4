# echoservice/infra/address.py
# Picks the interface address the service binds to.

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Iterable

import psutil


def interface_addresses() -> list[str]:
    """All IPv4 addresses on the host, in interface enumeration order."""
    found = []
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family == socket.AF_INET:
                found.append(addr.address)
    return found


def select_address(excluded_prefix: str, addresses: Iterable[str] | None = None) -> str:
    """
    Return the first non-loopback IPv4 address not starting with excluded_prefix.

    Returns "" when nothing qualifies or the interfaces cannot be enumerated;
    the caller decides whether that is fatal.
    """
    if addresses is None:
        try:
            addresses = interface_addresses()
        except (OSError, psutil.Error):
            return ""

    for raw in addresses:
        try:
            ip = ipaddress.ip_address(raw)
        except ValueError:
            continue
        if ip.version != 4 or ip.is_loopback:
            continue
        text = str(ip)
        if text.startswith(excluded_prefix):
            continue
        return text
    return ""

from __future__ import annotations

import ipaddress
import socket
import struct
from datetime import datetime
from pathlib import Path

import psutil

from diagserver.errors import GatewayDiscoveryError, HostnameLookupError


TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

# Flags from <linux/route.h>.
RTF_UP = 0x0001
RTF_GATEWAY = 0x0002


def get_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def get_hostname() -> str:
    try:
        hostname = socket.gethostname()
    except OSError as exc:
        raise HostnameLookupError(f"hostname lookup failed: {exc}") from exc
    if not hostname:
        raise HostnameLookupError("hostname lookup returned an empty name")
    return hostname


def get_local_ip() -> str:
    """Return the first non-loopback IPv4 address, or "" if there is none."""

    try:
        interfaces = psutil.net_if_addrs()
    except OSError:
        return ""

    for addrs in interfaces.values():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.ip_address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return str(ip)
    return ""


def _hex_to_ipv4(value: str) -> str:
    # /proc/net/route stores addresses as host-order (little-endian) hex.
    return socket.inet_ntoa(struct.pack("<L", int(value, 16)))


def parse_route_table(text: str) -> str:
    """Return the gateway of the first usable default route in a /proc/net/route dump."""

    lines = text.splitlines()
    if not lines:
        raise GatewayDiscoveryError("route table is empty")

    header = lines[0].split()
    try:
        dest_idx = header.index("Destination")
        gw_idx = header.index("Gateway")
        flags_idx = header.index("Flags")
    except ValueError as exc:
        raise GatewayDiscoveryError("route table header is malformed") from exc

    for line in lines[1:]:
        fields = line.split()
        if len(fields) <= max(dest_idx, gw_idx, flags_idx):
            continue
        try:
            destination = int(fields[dest_idx], 16)
            flags = int(fields[flags_idx], 16)
        except ValueError:
            continue
        if destination != 0 or flags & (RTF_UP | RTF_GATEWAY) != (RTF_UP | RTF_GATEWAY):
            continue
        try:
            return _hex_to_ipv4(fields[gw_idx])
        except (ValueError, struct.error) as exc:
            raise GatewayDiscoveryError(f"invalid gateway entry {fields[gw_idx]!r}") from exc

    raise GatewayDiscoveryError("no default route found")


def discover_gateway(route_path: str | Path = "/proc/net/route") -> str:
    try:
        text = Path(route_path).read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as exc:
        raise GatewayDiscoveryError(f"cannot read {route_path}: {exc}") from exc
    return parse_route_table(text)

"""Peer network addresses and their wire encoding."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Optional, Union

from .protocol import NET_ADDRESS_TIME_VERSION, ServiceFlag, read_exact

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _normalize_ip(ip) -> Optional[IPAddress]:
    if ip is None:
        return None
    if isinstance(ip, (bytes, bytearray)):
        ip = ipaddress.ip_address(bytes(ip))
    elif not isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        ip = ipaddress.ip_address(ip)
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _ip_to_16_bytes(ip: Optional[IPAddress]) -> bytes:
    if ip is None:
        return bytes(16)
    if isinstance(ip, ipaddress.IPv4Address):
        return b"\x00" * 10 + b"\xff\xff" + ip.packed
    return ip.packed


@dataclass
class NetAddress:
    """A peer address: when it was last seen, its services, IP and port."""

    timestamp: Optional[datetime] = None
    services: ServiceFlag = ServiceFlag(0)
    ip: Optional[IPAddress] = None
    port: int = 0

    def __post_init__(self) -> None:
        self.services = ServiceFlag(self.services)
        self.ip = _normalize_ip(self.ip)

    def has_service(self, service: ServiceFlag) -> bool:
        """Whether every bit of ``service`` is advertised."""
        return self.services & service == service

    def add_service(self, service: ServiceFlag) -> None:
        """Advertise ``service`` in addition to the current services."""
        self.services |= service


def new_net_address(ip, port, services=ServiceFlag(0), timestamp=None) -> NetAddress:
    """Build an address, defaulting the timestamp to now, truncated to seconds."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    return NetAddress(
        timestamp=timestamp.replace(microsecond=0),
        services=ServiceFlag(services),
        ip=ip,
        port=port,
    )


def max_net_address_payload(pver: int) -> int:
    """Largest encoded size of an address for protocol version ``pver``."""
    size = 26
    if pver >= NET_ADDRESS_TIME_VERSION:
        size += 4
    return size


def read_net_address(reader: BinaryIO, pver: int, with_timestamp: bool) -> NetAddress:
    """Decode an address; the timestamp is present only when asked for and supported."""
    timestamp = None
    if with_timestamp and pver >= NET_ADDRESS_TIME_VERSION:
        (seconds,) = struct.unpack("<I", read_exact(reader, 4))
        timestamp = datetime.fromtimestamp(seconds, timezone.utc)
    (services,) = struct.unpack("<Q", read_exact(reader, 8))
    ip = ipaddress.IPv6Address(read_exact(reader, 16))
    (port,) = struct.unpack(">H", read_exact(reader, 2))
    return NetAddress(timestamp=timestamp, services=ServiceFlag(services), ip=ip, port=port)


def write_net_address(
    writer: BinaryIO, pver: int, address: NetAddress, with_timestamp: bool
) -> None:
    """Encode an address; the timestamp is written only when asked for and supported."""
    parts = []
    if with_timestamp and pver >= NET_ADDRESS_TIME_VERSION:
        seconds = int(address.timestamp.timestamp()) if address.timestamp else 0
        parts.append(struct.pack("<I", seconds & 0xFFFFFFFF))
    parts.append(struct.pack("<Q", int(address.services)))
    parts.append(_ip_to_16_bytes(_normalize_ip(address.ip)))
    parts.append(struct.pack(">H", address.port))
    writer.write(b"".join(parts))
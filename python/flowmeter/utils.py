"""Utility helpers and protocol constants used by the flow modules."""

from __future__ import annotations

import ipaddress
from typing import Union

from .errors import InvalidAddress

FLOW_SUFFIX = "_Flows.json"

# Transport protocol numbers (IP "protocol" / IPv6 "next header").
TCP = 6
UDP = 17

# Network protocol identifiers, carried as EtherType values.
ETH_TYPE_IP = 0x0800
ETH_TYPE_IP6 = 0x86DD

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_ip(value: Union[bytes, bytearray, str, IPAddress]) -> IPAddress:
    """Convert a textual or packed address into an ``ipaddress`` object."""
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) not in (4, 16):
            raise InvalidAddress(value)
        return ipaddress.ip_address(bytes(value))
    if not isinstance(value, str):
        raise InvalidAddress(value)
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise InvalidAddress(value) from exc


def address_ordinal(address: IPAddress) -> tuple:
    """Total order over mixed address families: IPv4 sorts before IPv6."""
    return (address.version, int(address))


def protocol_name(protocol: int) -> str:
    if protocol == TCP:
        return "TCP"
    if protocol == UDP:
        return "UDP"
    return "UNKNOWN"


__all__ = [
    "FLOW_SUFFIX",
    "TCP",
    "UDP",
    "ETH_TYPE_IP",
    "ETH_TYPE_IP6",
    "IPAddress",
    "parse_ip",
    "address_ordinal",
    "protocol_name",
]

"""Direction independent flow identity."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .errors import InvalidAddress, MalformedPersistedState
from .schema import check_fields, expect_object, expect_str, expect_uint
from .utils import IPAddress, address_ordinal, parse_ip, protocol_name

_FIELDS = ("transport_protocol", "src", "src_port", "dst", "dst_port")


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True, eq=False)
class FlowKey:
    """Transport protocol plus an unordered pair of (address, port) endpoints.

    Two keys are the same flow when their protocols match and their endpoints
    match either as given or swapped. Equality and hashing both go through
    :meth:`canonical`, so a key and its reverse always land in the same
    dictionary slot. ``src``/``dst`` accept textual or packed addresses and
    are stored as :mod:`ipaddress` objects; ports are 0 when the protocol has
    none.
    """

    transport_protocol: int
    src: IPAddress
    dst: IPAddress
    src_port: int = 0
    dst_port: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "src", parse_ip(self.src))
        object.__setattr__(self, "dst", parse_ip(self.dst))
        if not 0 <= self.transport_protocol <= 0xFF:
            raise ValueError(f"transport_protocol out of range: {self.transport_protocol}")
        for port in (self.src_port, self.dst_port):
            if not 0 <= port <= 0xFFFF:
                raise ValueError(f"port out of range: {port}")

    # Orientation -----------------------------------------------------------
    def four_tuple(self) -> Tuple[IPAddress, int, IPAddress, int]:
        return (self.src, self.src_port, self.dst, self.dst_port)

    def reversed(self) -> "FlowKey":
        return FlowKey(self.transport_protocol, self.dst, self.src, self.dst_port, self.src_port)

    def canonical(self) -> Tuple[int, Tuple[int, int], int, Tuple[int, int], int]:
        """Protocol followed by the endpoints in address-then-port order."""
        src = address_ordinal(self.src)
        dst = address_ordinal(self.dst)
        if src < dst or (src == dst and self.src_port <= self.dst_port):
            return (self.transport_protocol, src, self.src_port, dst, self.dst_port)
        return (self.transport_protocol, dst, self.dst_port, src, self.src_port)

    def direction_of(self, observed: "FlowKey") -> Direction:
        """Tell whether ``observed`` travels along this key or against it."""
        if observed != self:
            raise ValueError(f"{observed} does not belong to flow {self}")
        if observed.four_tuple() == self.four_tuple():
            return Direction.FORWARD
        return Direction.BACKWARD

    # Identity --------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowKey):
            return NotImplemented
        return self.canonical() == other.canonical()

    def __hash__(self) -> int:
        return hash(self.canonical())

    def __str__(self) -> str:
        return f"{self.src}-{self.dst}-{self.src_port}-{self.dst_port}-{self.transport_protocol}"

    @property
    def protocol_name(self) -> str:
        return protocol_name(self.transport_protocol)

    # Persistence -----------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "transport_protocol": self.transport_protocol,
            "src": str(self.src),
            "src_port": self.src_port,
            "dst": str(self.dst),
            "dst_port": self.dst_port,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "flow_key") -> "FlowKey":
        obj = expect_object(data, path)
        check_fields(obj, path, _FIELDS)
        protocol = expect_uint(obj["transport_protocol"], f"{path}.transport_protocol", bits=8)
        src_port = expect_uint(obj["src_port"], f"{path}.src_port", bits=16)
        dst_port = expect_uint(obj["dst_port"], f"{path}.dst_port", bits=16)
        src = expect_str(obj["src"], f"{path}.src")
        dst = expect_str(obj["dst"], f"{path}.dst")
        try:
            return cls(protocol, src, dst, src_port, dst_port)
        except InvalidAddress as exc:
            raise MalformedPersistedState(path, str(exc)) from exc


__all__ = ["Direction", "FlowKey"]

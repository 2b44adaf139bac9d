"""Running totals for the packets seen in one direction of a flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .packet_record import PacketRecord
from .schema import check_fields, expect_list, expect_object, expect_uint
from .timestamp import Timestamp

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("packet_count", "byte_count", "network_protocols")
_OPTIONAL_FIELDS = ("first_seen", "last_seen")


@dataclass
class DirectionalAggregate:
    """Counts, protocol set and time bounds for one direction.

    All fields only grow: counts increase, the protocol set gains members,
    ``first_seen`` moves earlier and ``last_seen`` later. In the
    packet-retaining variant ``packets`` additionally keeps every
    :class:`PacketRecord` in arrival order; otherwise it is ``None``.
    """

    packet_count: int = 0
    byte_count: int = 0
    network_protocols: Set[int] = field(default_factory=set)
    first_seen: Optional[Timestamp] = None
    last_seen: Optional[Timestamp] = None
    packets: Optional[List[PacketRecord]] = None

    @classmethod
    def create(cls, retain_packets: bool = False) -> "DirectionalAggregate":
        return cls(packets=[] if retain_packets else None)

    @property
    def retains_packets(self) -> bool:
        return self.packets is not None

    def record(self, packet: PacketRecord) -> None:
        self.packet_count += 1
        self.byte_count += packet.length
        self.network_protocols.add(packet.network_protocol)
        self.update_bounds(packet.timestamp)
        if self.packets is not None:
            self.packets.append(packet)

    def update_bounds(self, timestamp: Timestamp) -> None:
        extended = False
        if self.first_seen is None or timestamp < self.first_seen:
            self.first_seen = timestamp
            extended = True
        if self.last_seen is None or timestamp > self.last_seen:
            self.last_seen = timestamp
            extended = True
        if not extended:
            logger.debug(
                "Out of range timestamp %s within [%s, %s], bounds unchanged",
                timestamp,
                self.first_seen,
                self.last_seen,
            )

    # Persistence -----------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "packet_count": self.packet_count,
            "byte_count": self.byte_count,
            "network_protocols": sorted(self.network_protocols),
        }
        if self.first_seen is not None:
            data["first_seen"] = self.first_seen.to_dict()
        if self.last_seen is not None:
            data["last_seen"] = self.last_seen.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any, path: str = "aggregate") -> "DirectionalAggregate":
        obj = expect_object(data, path)
        check_fields(obj, path, _REQUIRED_FIELDS, _OPTIONAL_FIELDS)
        protocols_path = f"{path}.network_protocols"
        protocols = {
            expect_uint(value, f"{protocols_path}[{index}]", bits=16)
            for index, value in enumerate(expect_list(obj["network_protocols"], protocols_path))
        }
        return cls(
            packet_count=expect_uint(obj["packet_count"], f"{path}.packet_count"),
            byte_count=expect_uint(obj["byte_count"], f"{path}.byte_count"),
            network_protocols=protocols,
            first_seen=_optional_timestamp(obj, "first_seen", path),
            last_seen=_optional_timestamp(obj, "last_seen", path),
        )


def _optional_timestamp(obj: Dict[str, Any], name: str, path: str) -> Optional[Timestamp]:
    value = obj.get(name)
    if value is None:
        return None
    return Timestamp.from_dict(value, f"{path}.{name}")


__all__ = ["DirectionalAggregate"]

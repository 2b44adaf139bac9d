"""Immutable per-packet observation handed over by the packet decoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from .errors import MalformedPersistedState
from .flag import Flag, sort_flags
from .schema import check_fields, expect_list, expect_object, expect_str, expect_uint
from .timestamp import Timestamp

_REQUIRED_FIELDS = ("length", "timestamp", "flag_list", "network_protocol", "position")
_OPTIONAL_FIELDS = ("window", "network_header_length", "network_payload_length")


@dataclass(frozen=True)
class PacketRecord:
    """What the flow modules know about one captured packet.

    ``length`` is the number of bytes on the wire, ``network_protocol`` the
    layer-3 protocol id (an EtherType such as 0x0800 for IPv4) and
    ``position`` the index of the frame in the originating capture. The
    optional fields are ``None`` when the decoder could not tell, which is not
    the same as a zero value.
    """

    length: int
    timestamp: Timestamp
    network_protocol: int
    position: int
    flags: FrozenSet[Flag] = field(default_factory=frozenset)
    window: Optional[int] = None
    network_header_length: Optional[int] = None
    network_payload_length: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.flags, frozenset):
            object.__setattr__(self, "flags", frozenset(self.flags))

    @property
    def flag_list(self) -> Tuple[Flag, ...]:
        return sort_flags(self.flags)

    def has_flag(self, flag: Flag) -> bool:
        return flag in self.flags

    # Persistence -----------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"length": self.length}
        if self.window is not None:
            data["window"] = self.window
        data["timestamp"] = self.timestamp.to_dict()
        data["flag_list"] = [flag.value for flag in self.flag_list]
        data["network_protocol"] = self.network_protocol
        if self.network_header_length is not None:
            data["network_header_length"] = self.network_header_length
        if self.network_payload_length is not None:
            data["network_payload_length"] = self.network_payload_length
        data["position"] = self.position
        return data

    @classmethod
    def from_dict(cls, data: Any, path: str = "packet") -> "PacketRecord":
        obj = expect_object(data, path)
        check_fields(obj, path, _REQUIRED_FIELDS, _OPTIONAL_FIELDS)
        return cls(
            length=expect_uint(obj["length"], f"{path}.length"),
            window=_optional_uint(obj, "window", path, bits=16),
            timestamp=Timestamp.from_dict(obj["timestamp"], f"{path}.timestamp"),
            flags=frozenset(_parse_flags(obj["flag_list"], f"{path}.flag_list")),
            network_protocol=expect_uint(obj["network_protocol"], f"{path}.network_protocol", bits=16),
            network_header_length=_optional_uint(obj, "network_header_length", path),
            network_payload_length=_optional_uint(obj, "network_payload_length", path),
            position=expect_uint(obj["position"], f"{path}.position"),
        )


def _optional_uint(obj: Dict[str, Any], name: str, path: str, bits: int = 64) -> Optional[int]:
    value = obj.get(name)
    if value is None:
        return None
    return expect_uint(value, f"{path}.{name}", bits=bits)


def _parse_flags(value: Any, path: str) -> Iterable[Flag]:
    for index, item in enumerate(expect_list(value, path)):
        name = expect_str(item, f"{path}[{index}]")
        try:
            yield Flag.from_name(name)
        except ValueError as exc:
            raise MalformedPersistedState(f"{path}[{index}]", str(exc)) from None


__all__ = ["PacketRecord"]

"""Per-direction timeline features of a flow."""

from __future__ import annotations

from typing import List, Optional

from .flag import Flag
from .packet_record import PacketRecord
from .summary_statistics import StatisticSummary
from .timestamp import Timestamp


class SubFlow:
    """Packet lengths, inter-arrival gaps and TCP details for one direction.

    Gaps are measured between consecutive packets of this direction only.
    ``init_win_bytes`` is the window of the first packet, ``None`` when that
    packet carried none. ``min_header_length`` is the smallest known network
    header length.
    """

    __slots__ = (
        "psh_count",
        "urg_count",
        "init_win_bytes",
        "min_header_length",
        "_lengths",
        "_gaps",
        "_last_timestamp",
    )

    def __init__(self) -> None:
        self.psh_count = 0
        self.urg_count = 0
        self.init_win_bytes: Optional[int] = None
        self.min_header_length: Optional[int] = None
        self._lengths: List[float] = []
        self._gaps: List[float] = []
        self._last_timestamp: Optional[Timestamp] = None

    def add(self, packet: PacketRecord) -> None:
        if self._last_timestamp is None:
            self.init_win_bytes = packet.window
        else:
            self._gaps.append(packet.timestamp - self._last_timestamp)
        self._last_timestamp = packet.timestamp
        self._lengths.append(float(packet.length))

        if packet.has_flag(Flag.PSH):
            self.psh_count += 1
        if packet.has_flag(Flag.URG):
            self.urg_count += 1

        header = packet.network_header_length
        if header is not None and (self.min_header_length is None or header < self.min_header_length):
            self.min_header_length = header

    @property
    def packet_length(self) -> StatisticSummary:
        return StatisticSummary.of(self._lengths)

    @property
    def inter_arrival(self) -> StatisticSummary:
        return StatisticSummary.of(self._gaps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubFlow):
            return NotImplemented
        return (
            self._lengths == other._lengths
            and self._gaps == other._gaps
            and self.psh_count == other.psh_count
            and self.urg_count == other.urg_count
            and self.init_win_bytes == other.init_win_bytes
            and self.min_header_length == other.min_header_length
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"SubFlow(packets={len(self._lengths)}, psh={self.psh_count}, "
            f"urg={self.urg_count}, init_win_bytes={self.init_win_bytes})"
        )


__all__ = ["SubFlow"]

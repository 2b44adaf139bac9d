"""Bidirectional flow record built from the packets of one FlowKey."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from .activity import ActivityTracker
from .config import FlowConfig
from .directional_aggregate import DirectionalAggregate
from .errors import MalformedPersistedState
from .flow_key import Direction, FlowKey
from .packet_record import PacketRecord
from .schema import check_fields, expect_list, expect_object, expect_str
from .sub_flow import SubFlow
from .summary_statistics import StatisticSummary
from .timestamp import Timestamp

logger = logging.getLogger(__name__)

_PACKET_LIST_FIELDS = ("backward_packet_list", "forward_packet_list")
_AGGREGATE_FIELDS = ("backward_aggregate", "forward_aggregate")


class FlowRecord:
    """Forward/backward aggregates plus whole-flow timing statistics.

    "Forward" is the orientation of ``key``, i.e. of the first packet the
    table saw for this flow. Packet lengths and inter-arrival gaps are kept as
    raw samples and summarized on demand; the gap is measured against the
    previous packet in either direction. :meth:`sub_flow` gives the same
    features restricted to one direction.
    """

    def __init__(self, key: FlowKey, config: Optional[FlowConfig] = None) -> None:
        self.key = key
        self.config = config or FlowConfig()
        self.forward = DirectionalAggregate.create(self.config.retain_packets)
        self.backward = DirectionalAggregate.create(self.config.retain_packets)
        self.activity = ActivityTracker(self.config.activity_timeout)
        self._sub_flows = {Direction.FORWARD: SubFlow(), Direction.BACKWARD: SubFlow()}
        self.sni: Optional[str] = None
        self.bidirectional = False
        self._lengths: List[float] = []
        self._gaps: List[float] = []
        self._last_timestamp: Optional[Timestamp] = None

    # ------------------------------------------------------------------
    def aggregate(self, direction: Direction) -> DirectionalAggregate:
        if direction is Direction.FORWARD:
            return self.forward
        return self.backward

    def sub_flow(self, direction: Direction) -> SubFlow:
        return self._sub_flows[direction]

    def ingest(self, packet: PacketRecord, direction: Direction) -> None:
        self.aggregate(direction).record(packet)
        self._sub_flows[direction].add(packet)
        self.activity.observe(packet.timestamp)

        self._lengths.append(float(packet.length))
        if self._last_timestamp is not None:
            self._gaps.append(packet.timestamp - self._last_timestamp)
        self._last_timestamp = packet.timestamp

        if not self.bidirectional and self.forward.packet_count and self.backward.packet_count:
            self.bidirectional = True
            logger.debug("Flow %s is now bidirectional", self.key)

    def set_sni(self, sni: str) -> None:
        if self.sni is None:
            self.sni = sni
        elif sni != self.sni:
            logger.debug("Flow %s already named %r, ignoring %r", self.key, self.sni, sni)

    def finalize(self) -> None:
        self.activity.close()

    # Views -------------------------------------------------------------
    @property
    def packet_count(self) -> int:
        return self.forward.packet_count + self.backward.packet_count

    @property
    def byte_count(self) -> int:
        return self.forward.byte_count + self.backward.byte_count

    @property
    def first_seen(self) -> Optional[Timestamp]:
        bounds = [ts for ts in (self.forward.first_seen, self.backward.first_seen) if ts is not None]
        return min(bounds) if bounds else None

    @property
    def last_seen(self) -> Optional[Timestamp]:
        bounds = [ts for ts in (self.forward.last_seen, self.backward.last_seen) if ts is not None]
        return max(bounds) if bounds else None

    @property
    def duration(self) -> float:
        first, last = self.first_seen, self.last_seen
        if first is None or last is None:
            return 0.0
        return last - first

    @property
    def packet_length(self) -> StatisticSummary:
        return StatisticSummary.of(self._lengths)

    @property
    def inter_arrival(self) -> StatisticSummary:
        return StatisticSummary.of(self._gaps)

    @property
    def active(self) -> StatisticSummary:
        return self.activity.burst_durations

    @property
    def idle(self) -> StatisticSummary:
        return self.activity.idle_times

    # ------------------------------------------------------------------
    @property
    def retains_packets(self) -> bool:
        return self.forward.retains_packets and self.backward.retains_packets

    def _timeline(self) -> Tuple[Any, ...]:
        # cross-direction order of same-instant packets is not persisted
        return (
            sorted(self._lengths),
            self._gaps,
            self.activity.settled_durations,
            self.activity.idle_gaps,
            self._sub_flows[Direction.FORWARD],
            self._sub_flows[Direction.BACKWARD],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowRecord):
            return NotImplemented
        if not (
            self.key.four_tuple() == other.key.four_tuple()
            and self.key.transport_protocol == other.key.transport_protocol
            and self.sni == other.sni
            and self.bidirectional == other.bidirectional
            and self.forward == other.forward
            and self.backward == other.backward
        ):
            return False
        # the summarized variant does not persist a timeline
        if self.retains_packets and other.retains_packets:
            return self._timeline() == other._timeline()
        return True

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"FlowRecord({self.key}, forward={self.forward.packet_count}, "
            f"backward={self.backward.packet_count}, sni={self.sni!r})"
        )

    # Persistence -------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.sni is not None:
            data["sni"] = self.sni
        if self.retains_packets:
            data["backward_packet_list"] = [packet.to_dict() for packet in self.backward.packets]
            data["forward_packet_list"] = [packet.to_dict() for packet in self.forward.packets]
        else:
            data["backward_aggregate"] = self.backward.to_dict()
            data["forward_aggregate"] = self.forward.to_dict()
        return data

    @classmethod
    def from_dict(
        cls,
        key: FlowKey,
        data: Any,
        config: Optional[FlowConfig] = None,
        path: str = "flow",
    ) -> "FlowRecord":
        """Rebuild a record; the document decides which variant it uses.

        Packet lists are replayed in capture position order, ties broken by
        timestamp, so every derived statistic is recomputed. Summarized
        records only restore the two aggregates.
        """
        obj = expect_object(data, path)
        config = config or FlowConfig()

        if any(name in obj for name in _PACKET_LIST_FIELDS):
            check_fields(obj, path, _PACKET_LIST_FIELDS, ("sni",))
            record = cls(key, replace(config, retain_packets=True))
            tagged: List[Tuple[PacketRecord, Direction]] = []
            for name, direction in (
                ("forward_packet_list", Direction.FORWARD),
                ("backward_packet_list", Direction.BACKWARD),
            ):
                list_path = f"{path}.{name}"
                for index, item in enumerate(expect_list(obj[name], list_path)):
                    tagged.append((PacketRecord.from_dict(item, f"{list_path}[{index}]"), direction))
            tagged.sort(key=lambda pair: (pair[0].position, pair[0].timestamp))
            for packet, direction in tagged:
                record.ingest(packet, direction)
            record.finalize()
        elif any(name in obj for name in _AGGREGATE_FIELDS):
            check_fields(obj, path, _AGGREGATE_FIELDS, ("sni",))
            record = cls(key, replace(config, retain_packets=False))
            record.forward = DirectionalAggregate.from_dict(obj["forward_aggregate"], f"{path}.forward_aggregate")
            record.backward = DirectionalAggregate.from_dict(obj["backward_aggregate"], f"{path}.backward_aggregate")
            record.bidirectional = bool(record.forward.packet_count and record.backward.packet_count)
        else:
            check_fields(obj, path, (), ("sni",))
            raise MalformedPersistedState(path, "missing packet lists or aggregates")

        if "sni" in obj and obj["sni"] is not None:
            record.sni = expect_str(obj["sni"], f"{path}.sni")
        return record


__all__ = ["FlowRecord"]

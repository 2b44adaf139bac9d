"""Bidirectional flow records with descriptive statistics built from packet metadata."""

from .activity import ActivityTracker
from .config import FlowConfig
from .directional_aggregate import DirectionalAggregate
from .errors import FlowmeterError, InvalidAddress, MalformedPersistedState
from .flag import Flag, sort_flags
from .flow_key import Direction, FlowKey
from .flow_record import FlowRecord
from .flow_table import FlowTable, shard_index
from .packet_reader import DecodedPacket, PacketReader
from .packet_record import PacketRecord
from .report import REPORT_HEADER, write_flow_report
from .sub_flow import SubFlow
from .summary_statistics import StatisticSummary
from .timestamp import Timestamp

__all__ = [
    "ActivityTracker",
    "FlowConfig",
    "DirectionalAggregate",
    "FlowmeterError",
    "InvalidAddress",
    "MalformedPersistedState",
    "Flag",
    "sort_flags",
    "Direction",
    "FlowKey",
    "FlowRecord",
    "FlowTable",
    "shard_index",
    "DecodedPacket",
    "PacketReader",
    "PacketRecord",
    "REPORT_HEADER",
    "write_flow_report",
    "SubFlow",
    "StatisticSummary",
    "Timestamp",
]

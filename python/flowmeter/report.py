"""Flat per-flow CSV report built by iterating a FlowTable."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Optional, Union

from .flow_key import Direction, FlowKey
from .flow_record import FlowRecord
from .flow_table import FlowTable
from .summary_statistics import StatisticSummary

_STAT_COLUMNS = ("min", "max", "mean", "std")
_STATISTICS = (
    "pkt_len",
    "fwd_pkt_len",
    "bwd_pkt_len",
    "iat",
    "fwd_iat",
    "bwd_iat",
    "active",
    "idle",
)

REPORT_HEADER: List[str] = [
    "flow_id",
    "src_ip",
    "src_port",
    "dst_ip",
    "dst_port",
    "protocol",
    "sni",
    "bidirectional",
    "first_seen",
    "duration",
    "fwd_packets",
    "bwd_packets",
    "fwd_bytes",
    "bwd_bytes",
    "fwd_psh_flags",
    "bwd_psh_flags",
    "fwd_urg_flags",
    "bwd_urg_flags",
    "init_win_bytes_fwd",
    "init_win_bytes_bwd",
    "min_seg_size_fwd",
] + [f"{name}_{column}" for name in _STATISTICS for column in _STAT_COLUMNS]


def _format(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.6f}"


def _optional(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _statistic_cells(summary: StatisticSummary) -> List[str]:
    return [
        _format(summary.min),
        _format(summary.max),
        _format(summary.mean),
        _format(summary.standard_deviation),
    ]


def flow_row(key: FlowKey, record: FlowRecord) -> List[str]:
    first_seen = record.first_seen
    forward = record.sub_flow(Direction.FORWARD)
    backward = record.sub_flow(Direction.BACKWARD)
    row = [
        str(key),
        str(key.src),
        str(key.src_port),
        str(key.dst),
        str(key.dst_port),
        key.protocol_name,
        record.sni or "",
        str(record.bidirectional).lower(),
        "" if first_seen is None else str(first_seen),
        _format(record.duration),
        str(record.forward.packet_count),
        str(record.backward.packet_count),
        str(record.forward.byte_count),
        str(record.backward.byte_count),
        str(forward.psh_count),
        str(backward.psh_count),
        str(forward.urg_count),
        str(backward.urg_count),
        _optional(forward.init_win_bytes),
        _optional(backward.init_win_bytes),
        _optional(forward.min_header_length),
    ]
    summaries = (
        record.packet_length,
        forward.packet_length,
        backward.packet_length,
        record.inter_arrival,
        forward.inter_arrival,
        backward.inter_arrival,
        record.active,
        record.idle,
    )
    for summary in summaries:
        row.extend(_statistic_cells(summary))
    return row


def write_flow_report(table: FlowTable, file_path: Union[str, Path]) -> int:
    """Write one CSV row per flow; returns the number of rows written."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(REPORT_HEADER)
        for key, record in table.iterate():
            writer.writerow(flow_row(key, record))
            rows += 1
    return rows


__all__ = ["REPORT_HEADER", "flow_row", "write_flow_report"]

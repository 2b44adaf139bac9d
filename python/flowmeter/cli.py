"""Command-line entry point for batch PCAP to flow table conversion."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .config import DEFAULT_ACTIVITY_TIMEOUT, FlowConfig
from .flow_table import FlowTable
from .packet_reader import PacketReader
from .report import write_flow_report
from .utils import FLOW_SUFFIX

logger = logging.getLogger(__name__)

REPORT_SUFFIX = "_Flows.csv"


@dataclass
class FlowStats:
    frames_read: int = 0
    packets: int = 0
    flows: int = 0
    output_path: Optional[Path] = None
    report_path: Optional[Path] = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate PCAP captures into bidirectional flow records.",
    )
    parser.add_argument(
        "pcap_path",
        type=Path,
        help="Path to a PCAP file or a directory containing PCAP files.",
    )
    parser.add_argument(
        "output_dir",
        type=Path,
        help=f"Directory where generated *{FLOW_SUFFIX} files will be written.",
    )
    parser.add_argument(
        "--activity-timeout",
        type=float,
        default=DEFAULT_ACTIVITY_TIMEOUT,
        metavar="SECONDS",
        help="Gap that separates two active bursts of a flow (default: 5).",
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Persist per-direction aggregates instead of full packet lists.",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help=f"Also write a per-flow statistics CSV (*{REPORT_SUFFIX}).",
    )
    parser.add_argument(
        "--ipv6",
        action="store_true",
        help="Enable IPv6 packet parsing (disabled by default).",
    )
    parser.add_argument(
        "--no-ipv4",
        action="store_true",
        help="Disable IPv4 packet parsing (enabled by default).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Log level for diagnostic output.",
    )
    return parser


def collect_pcaps(path: Path) -> List[Path]:
    if path.is_file():
        return [path]
    if not path.is_dir():
        raise FileNotFoundError(f"PCAP path is neither file nor directory: {path}")

    candidates: Iterable[Path] = path.iterdir()
    return [
        entry
        for entry in sorted(candidates)
        if entry.is_file() and entry.suffix.lower() in {".pcap", ".pcapng"}
    ]


def process_pcap(
    pcap_file: Path,
    output_dir: Path,
    config: FlowConfig,
    *,
    read_ip4: bool = True,
    read_ip6: bool = False,
    report: bool = False,
) -> FlowStats:
    stats = FlowStats()
    table = FlowTable(config)

    with PacketReader(pcap_file, read_ip4=read_ip4, read_ip6=read_ip6) as reader:
        for decoded in reader:
            table.ingest(decoded.key, decoded.packet)
            stats.packets += 1
        stats.frames_read = reader.frames_read
    table.finalize()
    stats.flows = len(table)

    output_dir.mkdir(parents=True, exist_ok=True)
    stats.output_path = output_dir / f"{pcap_file.name}{FLOW_SUFFIX}"
    table.save(stats.output_path)

    if report:
        stats.report_path = output_dir / f"{pcap_file.name}{REPORT_SUFFIX}"
        write_flow_report(table, stats.report_path)

    return stats


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.no_ipv4 and not args.ipv6:
        parser.error("At least one of IPv4 or IPv6 processing must be enabled.")
    if args.activity_timeout <= 0:
        parser.error("--activity-timeout must be greater than 0 seconds.")

    config = FlowConfig(
        activity_timeout=args.activity_timeout,
        retain_packets=not args.summary_only,
    )

    try:
        pcaps = collect_pcaps(args.pcap_path)
    except FileNotFoundError as exc:
        logger.error(str(exc))
        return 1

    if not pcaps:
        logger.warning("No PCAP files found at %s", args.pcap_path)
        return 1

    exit_code = 0
    for index, pcap_file in enumerate(pcaps, 1):
        logger.info("Processing %s (%d/%d)", pcap_file, index, len(pcaps))
        try:
            stats = process_pcap(
                pcap_file,
                args.output_dir,
                config,
                read_ip4=not args.no_ipv4,
                read_ip6=args.ipv6,
                report=args.report,
            )
        except (OSError, RuntimeError):
            logger.exception("Failed processing %s", pcap_file)
            exit_code = 1
            continue

        logger.info(
            "Finished %s: frames=%d, packets=%d, flows=%d -> %s",
            pcap_file.name,
            stats.frames_read,
            stats.packets,
            stats.flows,
            stats.output_path,
        )
        if stats.report_path is not None:
            logger.info("Wrote flow report to %s", stats.report_path)

    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

"""PCAP ingestion layer producing FlowKey/PacketRecord pairs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Iterator, NamedTuple, Optional, Tuple, Union

import dpkt
from dpkt.ethernet import VLANtag8021Q

from .flag import Flag
from .flow_key import FlowKey
from .packet_record import PacketRecord
from .timestamp import Timestamp
from .utils import ETH_TYPE_IP, ETH_TYPE_IP6

logger = logging.getLogger(__name__)

IP6_HEADER_LENGTH = 40

_TCP_FLAG_BITS = (
    (dpkt.tcp.TH_FIN, Flag.FIN),
    (dpkt.tcp.TH_SYN, Flag.SYN),
    (dpkt.tcp.TH_RST, Flag.RST),
    (dpkt.tcp.TH_PUSH, Flag.PSH),
    (dpkt.tcp.TH_ACK, Flag.ACK),
    (dpkt.tcp.TH_URG, Flag.URG),
    (dpkt.tcp.TH_ECE, Flag.ECE),
    (dpkt.tcp.TH_CWR, Flag.CWR),
)


class DecodedPacket(NamedTuple):
    """A decoded frame: the key in the packet's own orientation and its record."""

    key: FlowKey
    packet: PacketRecord


def tcp_flags(tcp: dpkt.tcp.TCP) -> frozenset:
    flags = {flag for bit, flag in _TCP_FLAG_BITS if tcp.flags & bit}
    # NS is the low bit of the data offset byte, outside dpkt's flags field
    if tcp.pack_hdr()[12] & 0x01:
        flags.add(Flag.NS)
    return frozenset(flags)


class PacketReader:
    """Iterates over the IP packets of a PCAP capture.

    ``position`` on every emitted record is the zero-based index of the frame
    in the capture, skipped frames included, so records can be traced back to
    the original file.
    """

    def __init__(
        self,
        pcap_path: Union[str, Path],
        *,
        read_ip4: bool = True,
        read_ip6: bool = False,
    ) -> None:
        path = Path(pcap_path)
        if not path.is_file():
            raise FileNotFoundError(f"PCAP file does not exist: {path}")
        if not read_ip4 and not read_ip6:
            raise ValueError("At least one of read_ip4 or read_ip6 must be enabled")

        self.path = path
        self.read_ip4 = read_ip4
        self.read_ip6 = read_ip6

        self._file: Optional[IO[bytes]] = None
        self._pcap: Optional[dpkt.pcap.Reader] = None
        self._packet_iter: Optional[Iterator[Tuple[float, bytes]]] = None
        self._position = 0

        self.frames_read = 0
        self.frames_skipped = 0

    # ------------------------------------------------------------------
    def __enter__(self) -> "PacketReader":
        self._open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def close(self) -> None:
        self._pcap = None
        if self._file is not None:
            try:
                self._file.close()
            except OSError:
                logger.debug("Failed to close PCAP file", exc_info=True)
            finally:
                self._file = None
        self._packet_iter = None

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[DecodedPacket]:
        while True:
            decoded = self.next_packet()
            if decoded is None:
                break
            yield decoded

    def next_packet(self) -> Optional[DecodedPacket]:
        self._ensure_iter()
        assert self._packet_iter is not None

        for ts, buf in self._packet_iter:
            position = self._position
            self._position += 1
            self.frames_read += 1
            decoded = self._decode_frame(position, ts, buf)
            if decoded is not None:
                return decoded
            self.frames_skipped += 1
        return None

    # ------------------------------------------------------------------
    def _ensure_iter(self) -> None:
        if self._pcap is None or self._packet_iter is None:
            self._open()
            assert self._pcap is not None
            self._packet_iter = iter(self._pcap)

    def _open(self) -> None:
        if self._pcap is not None:
            return
        try:
            self._file = self.path.open("rb")
            self._pcap = dpkt.pcap.Reader(self._file)
        except (OSError, ValueError, dpkt.dpkt.NeedData) as exc:
            self.close()
            raise RuntimeError(f"Failed to open PCAP file: {self.path}") from exc

    # ------------------------------------------------------------------
    def _decode_frame(self, position: int, timestamp: float, frame: bytes) -> Optional[DecodedPacket]:
        try:
            ethernet = dpkt.ethernet.Ethernet(frame)
        except (dpkt.UnpackError, ValueError):
            logger.debug("Skipping undecodable Ethernet frame %d", position, exc_info=True)
            return None

        payload = ethernet.data
        if isinstance(payload, VLANtag8021Q):
            payload = payload.data

        if isinstance(payload, dpkt.ip.IP):
            if not self.read_ip4:
                return None
            header_length = payload.hl << 2
            return self._build(
                position,
                timestamp,
                len(frame),
                payload,
                protocol=payload.p,
                network_protocol=ETH_TYPE_IP,
                header_length=header_length,
                payload_length=max(payload.len - header_length, 0),
            )
        if isinstance(payload, dpkt.ip6.IP6):
            if not self.read_ip6:
                return None
            return self._build(
                position,
                timestamp,
                len(frame),
                payload,
                protocol=payload.nxt,
                network_protocol=ETH_TYPE_IP6,
                header_length=IP6_HEADER_LENGTH,
                payload_length=payload.plen,
            )
        return None

    def _build(
        self,
        position: int,
        timestamp: float,
        length: int,
        ip: Union[dpkt.ip.IP, dpkt.ip6.IP6],
        *,
        protocol: int,
        network_protocol: int,
        header_length: int,
        payload_length: int,
    ) -> DecodedPacket:
        transport = ip.data
        window: Optional[int] = None
        flags: frozenset = frozenset()
        if isinstance(transport, dpkt.tcp.TCP):
            window = transport.win
            flags = tcp_flags(transport)
        src_port = transport.sport if isinstance(transport, (dpkt.tcp.TCP, dpkt.udp.UDP)) else 0
        dst_port = transport.dport if isinstance(transport, (dpkt.tcp.TCP, dpkt.udp.UDP)) else 0

        key = FlowKey(protocol, ip.src, ip.dst, src_port, dst_port)
        packet = PacketRecord(
            length=length,
            timestamp=Timestamp.from_seconds(timestamp),
            network_protocol=network_protocol,
            position=position,
            flags=flags,
            window=window,
            network_header_length=header_length,
            network_payload_length=payload_length,
        )
        return DecodedPacket(key, packet)


__all__ = ["DecodedPacket", "PacketReader", "tcp_flags"]

from __future__ import annotations

import socket
import struct

import dpkt
import pytest

from flowmeter import Flag, FlowKey, Timestamp
from flowmeter.packet_reader import PacketReader, tcp_flags
from flowmeter.utils import ETH_TYPE_IP, ETH_TYPE_IP6


def _build_sample_pcap(path) -> list:
    frames = []
    with path.open("wb") as fh:
        writer = dpkt.pcap.Writer(fh)

        tcp = dpkt.tcp.TCP(
            sport=12345,
            dport=80,
            seq=1,
            flags=dpkt.tcp.TH_SYN | dpkt.tcp.TH_ACK,
            win=512,
        )
        tcp.data = b"hello"

        ip = dpkt.ip.IP(
            src=socket.inet_aton("192.0.2.1"),
            dst=socket.inet_aton("192.0.2.2"),
            p=dpkt.ip.IP_PROTO_TCP,
            ttl=64,
        )
        ip.data = tcp
        ip.len = len(ip)

        ethernet = dpkt.ethernet.Ethernet(
            src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
            dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
            type=dpkt.ethernet.ETH_TYPE_IP,
            data=ip,
        )
        frames.append(bytes(ethernet))
        writer.writepkt(frames[-1], ts=1.0)

        # not IP: must be skipped but still consume a position
        other = dpkt.ethernet.Ethernet(
            src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
            dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
            type=0x88B5,
            data=b"\x00" * 10,
        )
        frames.append(bytes(other))
        writer.writepkt(frames[-1], ts=1.5)

        udp = dpkt.udp.UDP(sport=53, dport=4444)
        udp.data = b"payload"
        udp.ulen = len(udp)

        ip6 = dpkt.ip6.IP6(
            src=socket.inet_pton(socket.AF_INET6, "2001:db8::1"),
            dst=socket.inet_pton(socket.AF_INET6, "2001:db8::2"),
            nxt=dpkt.ip.IP_PROTO_UDP,
            hlim=64,
        )
        ip6.data = udp
        ip6.plen = len(udp)

        ethernet6 = dpkt.ethernet.Ethernet(
            src=b"\xcc\xcc\xcc\xcc\xcc\xcc",
            dst=b"\xdd\xdd\xdd\xdd\xdd\xdd",
            type=dpkt.ethernet.ETH_TYPE_IP6,
            data=ip6,
        )
        frames.append(bytes(ethernet6))
        writer.writepkt(frames[-1], ts=2.5)

        writer.close()
    return frames


def test_packet_reader_decodes_tcp_and_udp_packets(tmp_path):
    pcap_path = tmp_path / "sample.pcap"
    frames = _build_sample_pcap(pcap_path)

    with PacketReader(pcap_path, read_ip4=True, read_ip6=True) as reader:
        decoded = list(reader)

    assert len(decoded) == 2
    (first_key, first), (second_key, second) = decoded

    assert first_key == FlowKey(dpkt.ip.IP_PROTO_TCP, "192.0.2.1", "192.0.2.2", 12345, 80)
    assert first_key.four_tuple()[1] == 12345
    assert first.length == len(frames[0])
    assert first.timestamp == Timestamp(1, 0)
    assert first.network_protocol == ETH_TYPE_IP
    assert first.network_header_length == 20
    assert first.network_payload_length == 20 + len(b"hello")
    assert first.window == 512
    assert first.flags == frozenset({Flag.SYN, Flag.ACK})
    assert first.position == 0

    assert second_key == FlowKey(dpkt.ip.IP_PROTO_UDP, "2001:db8::1", "2001:db8::2", 53, 4444)
    assert second.length == len(frames[2])
    assert second.timestamp == Timestamp(2, 500_000_000)
    assert second.network_protocol == ETH_TYPE_IP6
    assert second.network_header_length == 40
    assert second.network_payload_length == 8 + len(b"payload")
    assert second.window is None
    assert second.flags == frozenset()
    assert second.position == 2

    assert reader.frames_read == 3
    assert reader.frames_skipped == 1


def test_ipv6_is_skipped_unless_enabled(tmp_path):
    pcap_path = tmp_path / "sample_v4.pcap"
    _build_sample_pcap(pcap_path)

    reader = PacketReader(pcap_path)
    first = reader.next_packet()
    second = reader.next_packet()
    reader.close()

    assert first is not None
    assert first.key.transport_protocol == dpkt.ip.IP_PROTO_TCP
    assert second is None


def test_reader_rejects_missing_and_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        PacketReader(tmp_path / "missing.pcap")

    empty = tmp_path / "empty.pcap"
    empty.write_bytes(b"")
    with pytest.raises(ValueError):
        PacketReader(empty, read_ip4=False, read_ip6=False)

    garbage = tmp_path / "garbage.pcap"
    garbage.write_bytes(b"definitely not a capture file")
    with pytest.raises(RuntimeError):
        PacketReader(garbage).next_packet()


def test_tcp_flags_include_the_nonce_bit():
    header = struct.pack("!HHIIBBHHH", 1234, 80, 1, 0, 0x51, 0x12, 512, 0, 0)
    tcp = dpkt.tcp.TCP(header)

    assert tcp_flags(tcp) == frozenset({Flag.NS, Flag.SYN, Flag.ACK})

import json
import unittest

from flowmeter import Flag, MalformedPersistedState, PacketRecord, Timestamp, sort_flags

BASIC_PACKET = """
{
  "length": 66,
  "timestamp": {"secs": 1595325117, "nanos": 502092000},
  "flag_list": [],
  "network_protocol": 34525,
  "network_header_length": 5,
  "network_payload_length": 106,
  "position": 28456
}
"""

COMPLETE_PACKET = """
{
  "length": 55,
  "window": 2893,
  "timestamp": {"secs": 1595325118, "nanos": 502092010},
  "flag_list": ["ACK", "CWR", "ECE", "FIN", "NS", "PSH", "RST", "SYN", "URG"],
  "network_protocol": 17,
  "network_header_length": 5,
  "network_payload_length": 105,
  "position": 1234
}
"""


def _compact(text: str) -> str:
    return json.dumps(json.loads(text), separators=(",", ":"))


class TimestampTest(unittest.TestCase):
    def test_ordering_and_difference(self) -> None:
        early = Timestamp(10, 500_000_000)
        late = Timestamp(12, 0)
        self.assertLess(early, late)
        self.assertAlmostEqual(late - early, 1.5)
        self.assertAlmostEqual(early - late, -1.5)

    def test_from_seconds(self) -> None:
        ts = Timestamp.from_seconds(1.25)
        self.assertEqual(ts, Timestamp(1, 250_000_000))
        self.assertEqual(ts.total_nanos, 1_250_000_000)

    def test_rejects_out_of_range_nanos(self) -> None:
        with self.assertRaises(ValueError):
            Timestamp(1, 1_000_000_000)
        with self.assertRaises(MalformedPersistedState):
            Timestamp.from_dict({"secs": 1, "nanos": 1_000_000_000})


class PacketRecordTest(unittest.TestCase):
    def test_optional_fields_default_to_unknown(self) -> None:
        packet = PacketRecord(length=0, timestamp=Timestamp(), network_protocol=0, position=0)
        self.assertIsNone(packet.window)
        self.assertIsNone(packet.network_header_length)
        self.assertIsNone(packet.network_payload_length)
        self.assertEqual(packet.flags, frozenset())

    def test_position_is_required(self) -> None:
        with self.assertRaises(TypeError):
            PacketRecord(length=0, timestamp=Timestamp(), network_protocol=0)  # type: ignore[call-arg]

    def test_flags_iterate_in_canonical_order(self) -> None:
        packet = PacketRecord(
            length=60,
            timestamp=Timestamp(1, 0),
            network_protocol=0x0800,
            position=3,
            flags=[Flag.SYN, Flag.ACK, Flag.SYN],
        )
        self.assertEqual(packet.flag_list, (Flag.ACK, Flag.SYN))
        self.assertTrue(packet.has_flag(Flag.SYN))
        self.assertFalse(packet.has_flag(Flag.FIN))
        self.assertEqual(sort_flags(Flag), tuple(Flag))

    def test_basic_packet_round_trips(self) -> None:
        packet = PacketRecord.from_dict(json.loads(BASIC_PACKET))
        self.assertEqual(packet.timestamp.total_nanos, 1595325117502092000)
        self.assertIsNone(packet.window)
        self.assertEqual(json.dumps(packet.to_dict(), separators=(",", ":")), _compact(BASIC_PACKET))

    def test_complete_packet_round_trips(self) -> None:
        packet = PacketRecord.from_dict(json.loads(COMPLETE_PACKET))
        self.assertEqual(packet.timestamp.total_nanos, 1595325118502092010)
        self.assertEqual(len(packet.flags), 9)
        self.assertEqual(json.dumps(packet.to_dict(), separators=(",", ":")), _compact(COMPLETE_PACKET))

    def test_string_network_protocol_is_rejected(self) -> None:
        data = json.loads(BASIC_PACKET)
        data["network_protocol"] = "6"
        with self.assertRaises(MalformedPersistedState):
            PacketRecord.from_dict(data)

    def test_oversized_position_is_rejected(self) -> None:
        data = json.loads(BASIC_PACKET)
        data["position"] = 42424242424242424242
        with self.assertRaises(MalformedPersistedState):
            PacketRecord.from_dict(data)

    def test_missing_flag_list_is_rejected(self) -> None:
        data = json.loads(BASIC_PACKET)
        del data["flag_list"]
        with self.assertRaises(MalformedPersistedState):
            PacketRecord.from_dict(data)

    def test_misspelled_field_is_rejected(self) -> None:
        data = json.loads(BASIC_PACKET)
        data["windows"] = 2882
        with self.assertRaises(MalformedPersistedState) as ctx:
            PacketRecord.from_dict(data)
        self.assertIn("windows", str(ctx.exception))

    def test_unknown_flag_is_rejected(self) -> None:
        data = json.loads(BASIC_PACKET)
        data["flag_list"] = ["SYN", "XMAS"]
        with self.assertRaises(MalformedPersistedState):
            PacketRecord.from_dict(data)

    def test_boolean_is_not_a_length(self) -> None:
        data = json.loads(BASIC_PACKET)
        data["length"] = True
        with self.assertRaises(MalformedPersistedState):
            PacketRecord.from_dict(data)


if __name__ == "__main__":  # pragma: no cover - convenience
    unittest.main()

"""FlowKey to FlowRecord mapping with JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Iterator, Optional, Tuple, Union

from .config import FlowConfig
from .errors import MalformedPersistedState
from .flow_key import FlowKey
from .flow_record import FlowRecord
from .packet_record import PacketRecord
from .schema import check_fields, expect_list, expect_object

logger = logging.getLogger(__name__)

Source = Union[str, bytes, bytearray, os.PathLike, IO[str], IO[bytes], Dict[str, Any]]
Sink = Union[os.PathLike, IO[str]]


class FlowTable:
    """All flows of a run, keyed by their direction independent FlowKey.

    The table is owned by a single ingestion loop. Iteration order is the
    insertion order of the underlying dict but callers must not rely on it.
    """

    def __init__(self, config: Optional[FlowConfig] = None) -> None:
        self.config = config or FlowConfig()
        self._flows: Dict[FlowKey, FlowRecord] = {}

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._flows)

    def __contains__(self, key: object) -> bool:
        return key in self._flows

    def __iter__(self) -> Iterator[FlowKey]:
        return iter(self._flows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowTable):
            return NotImplemented
        return self._flows == other._flows

    __hash__ = None  # type: ignore[assignment]

    def contains(self, key: FlowKey) -> bool:
        return key in self._flows

    def get(self, key: FlowKey) -> Optional[FlowRecord]:
        return self._flows.get(key)

    def get_or_create(self, key: FlowKey) -> FlowRecord:
        record = self._flows.get(key)
        if record is None:
            record = FlowRecord(key, self.config)
            self._flows[key] = record
            logger.debug("New flow %s (%d flows)", key, len(self._flows))
        return record

    def insert(self, record: FlowRecord) -> None:
        if record.key in self._flows:
            raise ValueError(f"Flow {record.key} is already present")
        self._flows[record.key] = record

    def iterate(self) -> Iterator[Tuple[FlowKey, FlowRecord]]:
        return iter(self._flows.items())

    def records(self) -> Iterator[FlowRecord]:
        return iter(self._flows.values())

    # Ingestion --------------------------------------------------------
    def ingest(self, observed: FlowKey, packet: PacketRecord, sni: Optional[str] = None) -> FlowRecord:
        """Fold one decoded packet into its flow.

        ``observed`` is the key in the packet's own orientation; the packet is
        forward when that orientation matches the stored key.
        """
        record = self.get_or_create(observed)
        record.ingest(packet, record.key.direction_of(observed))
        if sni:
            record.set_sni(sni)
        return record

    def finalize(self) -> None:
        for record in self._flows.values():
            record.finalize()

    @property
    def packet_count(self) -> int:
        return sum(record.packet_count for record in self._flows.values())

    # Persistence ------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow_map": [[key.to_dict(), record.to_dict()] for key, record in self._flows.items()]
        }

    def save(self, sink: Sink, indent: Optional[int] = None) -> None:
        document = self.to_dict()
        if isinstance(sink, (str, os.PathLike)):
            path = Path(sink)
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=indent)
        else:
            json.dump(document, sink, indent=indent)
        logger.debug("Saved %d flows", len(self._flows))

    @classmethod
    def from_dict(cls, data: Any, config: Optional[FlowConfig] = None) -> "FlowTable":
        obj = expect_object(data, "$")
        check_fields(obj, "$", ("flow_map",))
        table = cls(config)
        for index, entry in enumerate(expect_list(obj["flow_map"], "$.flow_map")):
            path = f"$.flow_map[{index}]"
            pair = expect_list(entry, path)
            if len(pair) != 2:
                raise MalformedPersistedState(path, f"expected a [key, flow] pair, got {len(pair)} items")
            key = FlowKey.from_dict(pair[0], f"{path}[0]")
            if key in table:
                raise MalformedPersistedState(f"{path}[0]", f"duplicate flow key {key}")
            table.insert(FlowRecord.from_dict(key, pair[1], table.config, f"{path}[1]"))
        return table

    @classmethod
    def load(cls, source: Source, config: Optional[FlowConfig] = None) -> "FlowTable":
        """Read a persisted table.

        ``source`` may be a path, JSON text (``str``/``bytes``), a readable
        stream or an already parsed document. Any mismatch with the expected
        schema raises :class:`MalformedPersistedState`.
        """
        if isinstance(source, dict):
            document = source
        else:
            if isinstance(source, os.PathLike):
                text: Union[str, bytes] = Path(source).read_bytes()
            elif isinstance(source, (str, bytes, bytearray)):
                text = source
            else:
                text = source.read()
            try:
                document = json.loads(text)
            except ValueError as exc:
                raise MalformedPersistedState("$", f"invalid JSON: {exc}") from exc

        table = cls.from_dict(document, config)
        logger.debug("Loaded %d flows", len(table))
        return table

    # Sharding ---------------------------------------------------------
    @classmethod
    def merge(cls, tables: Iterable["FlowTable"], config: Optional[FlowConfig] = None) -> "FlowTable":
        """Concatenate tables whose key sets are disjoint."""
        merged = cls(config)
        for table in tables:
            for record in table.records():
                merged.insert(record)
        return merged


def shard_index(key: FlowKey, shards: int) -> int:
    """Stable shard for ``key``; both orientations of a flow agree."""
    if shards <= 0:
        raise ValueError("shards must be positive")
    return hash(key) % shards


__all__ = ["FlowTable", "shard_index"]

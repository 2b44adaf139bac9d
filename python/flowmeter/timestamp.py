"""Capture timestamps with nanosecond resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .errors import MalformedPersistedState
from .schema import check_fields, expect_object, expect_uint

NANOS_PER_SECOND = 1_000_000_000

_DEFAULT_FORMAT = "%d/%m/%Y %I:%M:%S"


@dataclass(frozen=True, order=True)
class Timestamp:
    """Seconds plus nanoseconds since the epoch, ordered chronologically.

    Subtracting two timestamps yields the elapsed time in seconds as a float.
    """

    secs: int = 0
    nanos: int = 0

    def __post_init__(self) -> None:
        if self.secs < 0:
            raise ValueError("secs must not be negative")
        if not 0 <= self.nanos < NANOS_PER_SECOND:
            raise ValueError("nanos must be within [0, 1e9)")

    @classmethod
    def from_nanos(cls, total: int) -> "Timestamp":
        secs, nanos = divmod(int(total), NANOS_PER_SECOND)
        return cls(secs, nanos)

    @classmethod
    def from_seconds(cls, value: float) -> "Timestamp":
        return cls.from_nanos(round(value * NANOS_PER_SECOND))

    @property
    def total_nanos(self) -> int:
        return self.secs * NANOS_PER_SECOND + self.nanos

    def total_seconds(self) -> float:
        return self.secs + self.nanos / NANOS_PER_SECOND

    def __sub__(self, other: "Timestamp") -> float:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return (self.total_nanos - other.total_nanos) / NANOS_PER_SECOND

    def format(self, fmt: Optional[str] = None) -> str:
        """Render the timestamp in local time."""
        return datetime.fromtimestamp(self.total_seconds()).strftime(fmt or _DEFAULT_FORMAT)

    def to_dict(self) -> Dict[str, Any]:
        return {"secs": self.secs, "nanos": self.nanos}

    @classmethod
    def from_dict(cls, data: Any, path: str = "timestamp") -> "Timestamp":
        obj = expect_object(data, path)
        check_fields(obj, path, ("secs", "nanos"))
        secs = expect_uint(obj["secs"], f"{path}.secs")
        nanos = expect_uint(obj["nanos"], f"{path}.nanos", bits=32)
        if nanos >= NANOS_PER_SECOND:
            raise MalformedPersistedState(f"{path}.nanos", "must be below one second")
        return cls(secs, nanos)

    def __str__(self) -> str:
        return f"{self.secs}.{self.nanos:09d}"


__all__ = ["NANOS_PER_SECOND", "Timestamp"]

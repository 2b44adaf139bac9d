"""TCP control flags observed on a packet."""

from __future__ import annotations

from enum import Enum, unique
from typing import Iterable, Tuple


@unique
class Flag(Enum):
    """TCP control flags, declared in canonical (serialization) order.

    NS  - ECN-nonce concealment protection (RFC 3540).
    CWR - congestion window reduced (RFC 3168).
    ECE - ECN-echo (RFC 3168).
    URG - urgent pointer is significant.
    ACK - acknowledgment field is significant.
    PSH - push buffered data to the receiving application.
    RST - reset the connection.
    SYN - synchronize sequence numbers.
    FIN - no more data from sender.
    """

    ACK = "ACK"
    CWR = "CWR"
    ECE = "ECE"
    FIN = "FIN"
    NS = "NS"
    PSH = "PSH"
    RST = "RST"
    SYN = "SYN"
    URG = "URG"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @classmethod
    def from_name(cls, name: str) -> "Flag":
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown TCP flag: {name!r}") from None


_RANK = {flag: index for index, flag in enumerate(Flag)}


def sort_flags(flags: Iterable[Flag]) -> Tuple[Flag, ...]:
    """Return the distinct flags in canonical order."""
    return tuple(sorted(set(flags), key=lambda flag: flag.rank))


__all__ = ["Flag", "sort_flags"]

"""Runtime settings threaded through flow ingestion."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ACTIVITY_TIMEOUT = 5.0


@dataclass(frozen=True)
class FlowConfig:
    """Explicit ingestion settings.

    ``activity_timeout`` is expressed in seconds: two packets further apart
    than this belong to different active bursts. ``retain_packets`` selects
    the packet-retaining record variant, which keeps every PacketRecord and
    persists packet lists instead of per-direction aggregates.
    """

    activity_timeout: float = DEFAULT_ACTIVITY_TIMEOUT
    retain_packets: bool = True

    def __post_init__(self) -> None:
        if self.activity_timeout <= 0:
            raise ValueError("activity_timeout must be positive")


__all__ = ["DEFAULT_ACTIVITY_TIMEOUT", "FlowConfig"]

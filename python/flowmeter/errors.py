"""Exception hierarchy shared by the flow parsing modules."""

from __future__ import annotations


class FlowmeterError(Exception):
    """Base class for every error raised by :mod:`flowmeter`."""


class InvalidAddress(FlowmeterError, ValueError):
    """Raised when an endpoint address is neither IPv4 nor IPv6."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid IP address: {value!r}")
        self.value = value


class MalformedPersistedState(FlowmeterError, ValueError):
    """Raised when a persisted flow table does not match the expected schema."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


__all__ = ["FlowmeterError", "InvalidAddress", "MalformedPersistedState"]

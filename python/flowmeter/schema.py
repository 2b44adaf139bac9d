"""Strict field checks for the persisted JSON representation.

Every helper takes the JSON path of the value it inspects so load errors can
point at the offending element, e.g. ``flow_map[3][1].forward_packet_list[0]``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .errors import MalformedPersistedState


def expect_object(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedPersistedState(path, f"expected an object, got {type(value).__name__}")
    return value


def expect_list(value: Any, path: str) -> List[Any]:
    if not isinstance(value, list):
        raise MalformedPersistedState(path, f"expected an array, got {type(value).__name__}")
    return value


def expect_str(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise MalformedPersistedState(path, f"expected a string, got {type(value).__name__}")
    return value


def expect_uint(value: Any, path: str, bits: int = 64) -> int:
    # bool is an int subclass; JSON true/false is never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPersistedState(path, f"expected an unsigned integer, got {type(value).__name__}")
    if not 0 <= value < (1 << bits):
        raise MalformedPersistedState(path, f"{value} does not fit in u{bits}")
    return value


def check_fields(
    obj: Dict[str, Any],
    path: str,
    required: Iterable[str],
    optional: Iterable[str] = (),
) -> None:
    """Reject unknown fields and report the first missing required one."""
    required = tuple(required)
    allowed = set(required) | set(optional)
    for name in obj:
        if name not in allowed:
            raise MalformedPersistedState(f"{path}.{name}", "unexpected field")
    for name in required:
        if name not in obj:
            raise MalformedPersistedState(f"{path}.{name}", "missing field")


__all__ = [
    "expect_object",
    "expect_list",
    "expect_str",
    "expect_uint",
    "check_fields",
]

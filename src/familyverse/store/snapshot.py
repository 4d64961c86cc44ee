"""Read-only key-value snapshot handed to the resolver.

The companion app persists widget state as a flat map of string keys to
strings, 64-bit timestamps and 32-bit counts. The resolver only sees that
map through the three typed accessors of ``KeyValueSnapshot``; each one
returns ``None`` instead of raising when a key is missing or holds a value
of another kind.

Example:
    >>> snap = DictSnapshot({"featured_memory_likes": 3, "featured_memory_title": "Picnic"})
    >>> snap.get_int32("featured_memory_likes")
    3
    >>> snap.get_int32("featured_memory_title") is None
    True
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@runtime_checkable
class KeyValueSnapshot(Protocol):
    """Typed read access to the shared widget store."""

    def get_string(self, key: str) -> str | None: ...

    def get_int64(self, key: str) -> int | None: ...

    def get_int32(self, key: str) -> int | None: ...


def _as_int(value: Any, low: int, high: int) -> int | None:
    # bool is an int subclass but never a stored count or timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < low or value > high:
        return None
    return value


class DictSnapshot:
    """Immutable ``KeyValueSnapshot`` backed by a plain mapping.

    The mapping is copied on construction, so later writes to the source
    dictionary never leak into a snapshot that is already being resolved.

    Args:
        values: Raw key-value pairs, e.g. as loaded from a preferences file.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: Mapping[str, Any] = MappingProxyType(dict(values or {}))

    def get_string(self, key: str) -> str | None:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def get_int64(self, key: str) -> int | None:
        return _as_int(self._values.get(key), INT64_MIN, INT64_MAX)

    def get_int32(self, key: str) -> int | None:
        return _as_int(self._values.get(key), INT32_MIN, INT32_MAX)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> list[str]:
        """Return the stored keys, sorted for stable diagnostics."""
        return sorted(self._values)

    def __repr__(self) -> str:
        return f"DictSnapshot({len(self._values)} keys)"

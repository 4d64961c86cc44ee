"""Key lookup table reconciling the two widget state schemas.

The companion app has written widget state under two key families over
time. Older builds wrote bare keys (``featured_memory_title``); newer
builds go through a storage bridge that prefixes every key twice
(``flutter.flutter.featured_memory_title``). Both may be present at once.

Which family wins is policy, so it lives in one table: every logical field
lists its candidate keys in priority order, together with the accessor
kind and a validity check. ``KeySchema.lookup`` walks the candidates and
returns the first present, well-typed, valid value.

Example:
    >>> schema = KeySchema.from_prefixes(["flutter.flutter.", ""])
    >>> schema["title"].keys
    ('flutter.flutter.featured_memory_title', 'featured_memory_title')
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Container, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from familyverse.core.models import FallbackReason
from familyverse.store.snapshot import KeyValueSnapshot

logger = logging.getLogger(__name__)

ValueKind = Literal["string", "int64", "int32"]

NAMESPACED_PREFIX = "flutter.flutter."
DEFAULT_PREFIXES: tuple[str, ...] = (NAMESPACED_PREFIX, "")

# Logical field -> (bare key, accessor kind)
FIELD_KEYS: dict[str, tuple[str, ValueKind]] = {
    "title": ("featured_memory_title", "string"),
    "image": ("featured_memory_image", "string"),
    "author": ("featured_memory_author", "string"),
    "shared_at": ("featured_memory_date", "int64"),
    "likes": ("featured_memory_likes", "int32"),
    "last_action": ("last_picture_date", "int64"),
    "nearby": ("nearby_stories", "int32"),
}

# Millisecond range that still converts to a calendar date in any time zone
_MAX_CALENDAR_MS = 253_402_214_399_999
_MIN_CALENDAR_MS = -62_135_510_400_000


# =============================================================================
# Validity checks
# =============================================================================


def _non_blank(value: Any) -> bool:
    return bool(value.strip())


def _non_negative(value: Any) -> bool:
    return value >= 0


def _calendar_ms(value: Any) -> bool:
    return _MIN_CALENDAR_MS <= value <= _MAX_CALENDAR_MS


def _always(value: Any) -> bool:
    return True


FIELD_CHECKS: dict[str, Callable[[Any], bool]] = {
    "title": _non_blank,
    "image": _non_blank,
    "author": _non_blank,
    "shared_at": _calendar_ms,
    "likes": _non_negative,
    "last_action": _always,
    "nearby": _non_negative,
}


# =============================================================================
# Table
# =============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """One row of the lookup table.

    Attributes:
        name: Logical field name used by the resolver.
        kind: Which snapshot accessor reads the value.
        keys: Candidate keys, highest priority first.
        accept: Returns False for values that are well-typed but unusable.
    """

    name: str
    kind: ValueKind
    keys: tuple[str, ...]
    accept: Callable[[Any], bool] = _always


@dataclass(frozen=True)
class Lookup:
    """Result of resolving one field against a snapshot."""

    value: Any = None
    key: str | None = None
    reason: FallbackReason | None = None

    @property
    def found(self) -> bool:
        return self.key is not None


class KeySchema:
    """Ordered candidate keys for every logical widget field."""

    def __init__(self, fields: Sequence[FieldSpec]) -> None:
        self._fields = {spec.name: spec for spec in fields}

    @classmethod
    def from_prefixes(cls, prefixes: Sequence[str] = DEFAULT_PREFIXES) -> KeySchema:
        """Build the table by applying each prefix, in order, to every bare key.

        Args:
            prefixes: Key prefixes in priority order. ``""`` means the bare
                legacy key. Duplicates are dropped.
        """
        ordered = tuple(dict.fromkeys(prefixes)) or ("",)
        return cls(
            [
                FieldSpec(
                    name=name,
                    kind=kind,
                    keys=tuple(f"{prefix}{bare}" for prefix in ordered),
                    accept=FIELD_CHECKS[name],
                )
                for name, (bare, kind) in FIELD_KEYS.items()
            ]
        )

    def __getitem__(self, name: str) -> FieldSpec:
        return self._fields[name]

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._fields.values())

    def field_names(self) -> list[str]:
        return list(self._fields)

    def lookup(self, snapshot: KeyValueSnapshot, name: str) -> Lookup:
        """Return the first usable value for ``name``.

        A candidate that is present but mistyped or rejected by the field's
        check is skipped exactly like a missing one. When nothing matches,
        the returned ``Lookup`` carries the fallback reason instead.
        """
        spec = self._fields[name]
        for key in spec.keys:
            value = _read(snapshot, spec, key)
            if value is not None:
                return Lookup(value=value, key=key)

        if _has_any_key(snapshot, spec.keys):
            return Lookup(reason=FallbackReason.TYPE_MISMATCH)
        return Lookup(reason=FallbackReason.MISSING_FIELD)


_EXPECTED_TYPES: dict[str, type] = {"string": str, "int64": int, "int32": int}


def _read(snapshot: KeyValueSnapshot, spec: FieldSpec, key: str) -> Any:
    try:
        if spec.kind == "string":
            value = snapshot.get_string(key)
        elif spec.kind == "int64":
            value = snapshot.get_int64(key)
        else:
            value = snapshot.get_int32(key)
    except Exception as e:
        # Snapshot implementations are external; a misbehaving accessor reads as absent
        logger.warning(f"Snapshot accessor failed for {key!r}: {type(e).__name__}: {e}")
        return None

    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, _EXPECTED_TYPES[spec.kind]):
        return None
    return value if spec.accept(value) else None


def _has_any_key(snapshot: KeyValueSnapshot, keys: Sequence[str]) -> bool:
    if not isinstance(snapshot, Container):
        return False
    try:
        return any(key in snapshot for key in keys)
    except Exception:
        return False

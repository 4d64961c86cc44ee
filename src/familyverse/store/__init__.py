"""Key-value store access for the widget.

Exports:
    - KeyValueSnapshot: Typed read protocol the resolver depends on
    - DictSnapshot: Immutable mapping-backed snapshot
    - PreferenceStore: Mutable, file-backed store shared with the companion app
"""

from familyverse.store.preferences import PreferenceStore
from familyverse.store.snapshot import DictSnapshot, KeyValueSnapshot

__all__ = [
    "DictSnapshot",
    "KeyValueSnapshot",
    "PreferenceStore",
]

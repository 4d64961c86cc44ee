"""File-backed preference store shared with the companion app.

The companion app writes widget state into a flat preference map. On
Android that map lives in a ``SharedPreferences`` XML file::

    <map>
        <string name="flutter.flutter.featured_memory_title">Beach Day</string>
        <long name="last_picture_date" value="1709640000000" />
        <int name="featured_memory_likes" value="3" />
    </map>

``PreferenceStore`` reads and writes that format (and a plain JSON object
for desktop use), and hands out immutable ``DictSnapshot`` copies for the
resolver. It does no locking and no journaling: a write is visible in the
next snapshot, and multi-field updates are not atomic.
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Literal

from familyverse.errors import StoreLoadError
from familyverse.store.snapshot import INT32_MAX, INT32_MIN, DictSnapshot

logger = logging.getLogger(__name__)

ValueKind = Literal["string", "int", "long", "boolean", "float", "set"]


# =============================================================================
# Store
# =============================================================================


class PreferenceStore:
    """Mutable preference map with typed writes and snapshot reads.

    Attributes:
        path: File the store was loaded from, if any. ``save()`` defaults to it.

    Example:
        >>> store = PreferenceStore()
        >>> store.put_string("featured_memory_title", "Picnic")
        >>> store.put_int64("last_picture_date", 1709640000000)
        >>> store.snapshot().get_int64("last_picture_date")
        1709640000000
    """

    def __init__(self, values: dict[str, Any] | None = None, path: Path | None = None) -> None:
        self.path = path
        self._values: dict[str, Any] = {}
        self._kinds: dict[str, ValueKind] = {}
        for key, value in (values or {}).items():
            self._values[key] = value
            self._kinds[key] = _infer_kind(value)

    # -------------------------------------------------------------------------
    # Typed writes
    # -------------------------------------------------------------------------

    def put_string(self, key: str, value: str) -> None:
        self._values[key] = value
        self._kinds[key] = "string"

    def put_int64(self, key: str, value: int) -> None:
        self._values[key] = int(value)
        self._kinds[key] = "long"

    def put_int32(self, key: str, value: int) -> None:
        value = int(value)
        if value < INT32_MIN or value > INT32_MAX:
            raise ValueError(f"{key}={value} does not fit in a 32-bit int")
        self._values[key] = value
        self._kinds[key] = "int"

    def remove(self, key: str) -> None:
        self._values.pop(key, None)
        self._kinds.pop(key, None)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> DictSnapshot:
        """Return an immutable copy of the current values."""
        return DictSnapshot(self._values)

    def kind_of(self, key: str) -> ValueKind | None:
        return self._kinds.get(key)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path) -> PreferenceStore:
        """Load a store from a ``SharedPreferences`` XML or JSON file.

        The format is picked from the suffix: ``.xml`` is read as Android
        preferences, anything else as a JSON object.

        Args:
            path: Preferences file to read.

        Returns:
            A store remembering ``path`` for later saves.

        Raises:
            StoreLoadError: If the file is missing, unreadable or malformed.
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreLoadError(f"Cannot read preferences file {path}: {e}") from e

        if path.suffix.lower() == ".xml":
            store = cls._from_xml(content, path)
        else:
            store = cls._from_json(content, path)

        logger.debug(f"Loaded {len(store)} preference keys from {path}")
        return store

    def save(self, path: Path | None = None) -> Path:
        """Write the store back to disk in the format implied by the suffix.

        Args:
            path: Destination; defaults to the path the store was loaded from.

        Returns:
            The path written.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No path given and store was not loaded from a file")

        target.parent.mkdir(parents=True, exist_ok=True)
        if target.suffix.lower() == ".xml":
            self._write_xml(target)
        else:
            target.write_text(
                json.dumps(self._values, indent=2, sort_keys=True, default=list),
                encoding="utf-8",
            )
        self.path = target
        logger.debug(f"Saved {len(self)} preference keys to {target}")
        return target

    @classmethod
    def _from_json(cls, content: str, path: Path) -> PreferenceStore:
        if not content.strip():
            return cls(path=path)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreLoadError(f"Malformed JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreLoadError(f"Expected a JSON object in {path}, got {type(data).__name__}")
        return cls(data, path=path)

    @classmethod
    def _from_xml(cls, content: str, path: Path) -> PreferenceStore:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise StoreLoadError(f"Malformed preferences XML in {path}: {e}") from e
        if root.tag != "map":
            raise StoreLoadError(f"Expected <map> root in {path}, got <{root.tag}>")

        store = cls(path=path)
        for element in root:
            name = element.get("name")
            if not name:
                logger.warning(f"Skipping unnamed <{element.tag}> entry in {path}")
                continue
            try:
                value = _parse_xml_value(element)
            except ValueError as e:
                # One corrupt entry should not hide the rest of the widget state
                logger.warning(f"Skipping unreadable preference {name!r} in {path}: {e}")
                continue
            store._values[name] = value
            store._kinds[name] = element.tag  # type: ignore[assignment]
        return store

    def _write_xml(self, target: Path) -> None:
        root = ET.Element("map")
        for key in sorted(self._values):
            value = self._values[key]
            kind = self._kinds.get(key) or _infer_kind(value)
            if kind == "string":
                element = ET.SubElement(root, "string", name=key)
                element.text = value
            elif kind == "set":
                element = ET.SubElement(root, "set", name=key)
                for item in value:
                    ET.SubElement(element, "string").text = str(item)
            elif kind == "boolean":
                ET.SubElement(root, "boolean", name=key, value="true" if value else "false")
            else:
                ET.SubElement(root, kind, name=key, value=str(value))
        ET.indent(root)
        ET.ElementTree(root).write(target, encoding="utf-8", xml_declaration=True)


# =============================================================================
# Helpers
# =============================================================================


def _parse_xml_value(element: ET.Element) -> Any:
    tag = element.tag
    if tag == "string":
        return element.text or ""
    if tag in ("int", "long"):
        return int(element.get("value", ""))
    if tag == "float":
        return float(element.get("value", ""))
    if tag == "boolean":
        raw = element.get("value", "").lower()
        if raw not in ("true", "false"):
            raise ValueError(f"invalid boolean {raw!r}")
        return raw == "true"
    if tag == "set":
        return tuple(child.text or "" for child in element)
    raise ValueError(f"unknown preference type <{tag}>")


def _infer_kind(value: Any) -> ValueKind:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "int" if INT32_MIN <= value <= INT32_MAX else "long"
    if isinstance(value, float):
        return "float"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "set"
    return "string"

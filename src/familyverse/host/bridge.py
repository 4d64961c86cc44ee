"""Companion app write calls.

The companion app pushes widget state through a small method channel. Each
call writes a subset of the store and then asks the widget to refresh:

==========================  =====================================================
Method                      Effect
==========================  =====================================================
``updateWidget``            refresh only
``updateFeaturedMemory``    title/imageUrl/author if given, date=now, likes (0)
``pictureTaken``            last_picture_date=now
``updateNearbyStories``     nearby_stories=count (0)
==========================  =====================================================

Writes use the bare (legacy) keys, one key at a time. A refresh running
between two writes may see a partially updated memory; the resolver
tolerates any such state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from familyverse.core.schema import FIELD_KEYS
from familyverse.core.timefmt import to_epoch_ms
from familyverse.errors import UnknownMethodError
from familyverse.store.preferences import PreferenceStore

logger = logging.getLogger(__name__)


class CompanionBridge:
    """Apply companion app method calls to a ``PreferenceStore``.

    Args:
        store: Store the companion app writes into.
        on_change: Called after every handled method, e.g. ``host.refresh``.
        clock: Current time source for the timestamps the bridge writes.
    """

    def __init__(
        self,
        store: PreferenceStore,
        on_change: Callable[[], Any] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.on_change = on_change
        self.clock = clock or (lambda: datetime.now().astimezone())
        self._handlers: dict[str, Callable[[Mapping[str, Any]], None]] = {
            "updateWidget": lambda args: None,
            "updateFeaturedMemory": self._update_featured_memory,
            "pictureTaken": self._picture_taken,
            "updateNearbyStories": self._update_nearby_stories,
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._handlers)

    def handle(self, method: str, arguments: Mapping[str, Any] | None = None) -> None:
        """Dispatch one method call, then trigger a refresh.

        Raises:
            UnknownMethodError: If ``method`` is not part of the channel.
        """
        handler = self._handlers.get(method)
        if handler is None:
            raise UnknownMethodError(method)

        logger.debug(f"Companion call {method} with {sorted((arguments or {}).keys())}")
        handler(arguments or {})
        if self.on_change is not None:
            self.on_change()

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _now_ms(self) -> int:
        return to_epoch_ms(self.clock())

    def _update_featured_memory(self, args: Mapping[str, Any]) -> None:
        for arg_name, field_name in (("title", "title"), ("imageUrl", "image"), ("author", "author")):
            value = args.get(arg_name)
            if value is not None:
                self.store.put_string(FIELD_KEYS[field_name][0], str(value))
        self.store.put_int64(FIELD_KEYS["shared_at"][0], self._now_ms())
        self.store.put_int32(FIELD_KEYS["likes"][0], _int_arg(args, "likes"))

    def _picture_taken(self, args: Mapping[str, Any]) -> None:
        self.store.put_int64(FIELD_KEYS["last_action"][0], self._now_ms())

    def _update_nearby_stories(self, args: Mapping[str, Any]) -> None:
        self.store.put_int32(FIELD_KEYS["nearby"][0], _int_arg(args, "count"))


def _int_arg(args: Mapping[str, Any], name: str) -> int:
    value = args.get(name)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, got bool")
    return int(value)

"""Derive the widget's presentation model from a store snapshot.

``ViewModelResolver.resolve(snapshot, now)`` is a pure function: it performs
no I/O, holds no state between calls, and never raises. Every missing,
mistyped or malformed field degrades to a configured default and the
degradation is recorded on the model (``fallbacks``, ``image_status``) and
in the log.

Example:
    >>> from familyverse.store import DictSnapshot
    >>> snapshot = DictSnapshot({
    ...     "flutter.flutter.featured_memory_title": "Beach Day",
    ...     "featured_memory_title": "Old Title",
    ... })
    >>> model = ViewModelResolver().resolve(snapshot, datetime.now())
    >>> model.cover_title
    'Beach Day'
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from familyverse.config import AppConfig, DisplayConfig, get_config
from familyverse.core.imaging import DecodedImage, decode_image_envelope
from familyverse.core.models import CoverImage, FallbackReason, ImageStatus, RenderModel
from familyverse.core.schema import KeySchema
from familyverse.core.timefmt import (
    ensure_aware,
    format_relative_time,
    from_epoch_ms,
    is_action_done_today,
    to_epoch_ms,
)
from familyverse.store.snapshot import KeyValueSnapshot

logger = logging.getLogger(__name__)


class ViewModelResolver:
    """Turns a key-value snapshot and a clock reading into a ``RenderModel``.

    Args:
        schema: Candidate-key table; defaults to namespaced keys before legacy keys.
        display: Placeholder texts.
        tz: Zone that defines "today"; None means the system local zone.
    """

    def __init__(
        self,
        schema: KeySchema | None = None,
        display: DisplayConfig | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.schema = schema or KeySchema.from_prefixes()
        self.display = display or DisplayConfig()
        self.tz = tz

    @classmethod
    def from_config(cls, config: AppConfig) -> ViewModelResolver:
        return cls(
            schema=config.keys.build_schema(),
            display=config.display,
            tz=config.clock.get_tzinfo(),
        )

    def resolve(self, snapshot: KeyValueSnapshot, now: datetime) -> RenderModel:
        """Build the render model for one refresh.

        Args:
            snapshot: Read-only view of the shared store.
            now: Current wall-clock time; naive values are read in ``self.tz``.

        Returns:
            A fresh, frozen RenderModel.
        """
        now = ensure_aware(now, self.tz)
        try:
            return self._resolve(snapshot, now)
        except Exception:
            logger.exception("Widget state resolution failed; rendering placeholders")
            return self._placeholder_model(now)

    def _placeholder_model(self, now: datetime) -> RenderModel:
        return RenderModel(
            cover_title=self.display.placeholder_title,
            author=self.display.placeholder_author,
            shared_at=now,
            relative_time_label="just now",
            fallbacks={name: FallbackReason.MISSING_FIELD for name in self.schema.field_names()},
        )

    def _resolve(self, snapshot: KeyValueSnapshot, now: datetime) -> RenderModel:
        now_ms = to_epoch_ms(now)
        fallbacks: dict[str, FallbackReason] = {}

        def field(name: str, default: object) -> object:
            found = self.schema.lookup(snapshot, name)
            if found.found:
                logger.debug(f"{name} resolved from {found.key!r}")
                return found.value
            fallbacks[name] = found.reason or FallbackReason.MISSING_FIELD
            logger.debug(f"{name} unavailable ({fallbacks[name].value}); using default")
            return default

        title = field("title", self.display.placeholder_title)
        author = field("author", self.display.placeholder_author)
        shared_at_ms = field("shared_at", now_ms)
        like_count = field("likes", 0)
        last_action_ms = field("last_action", 0)
        nearby_count = field("nearby", 0)

        cover_image: CoverImage | None = None
        image_status = ImageStatus.ABSENT
        envelope = field("image", None)
        if envelope is not None:
            result = decode_image_envelope(envelope)
            if isinstance(result, DecodedImage):
                cover_image = result.image
                image_status = ImageStatus.DECODED
            else:
                # A broken cover replaces the title too, not only the image
                logger.warning(
                    f"Cover image malformed ({result.reason}); showing placeholder. {result.detail}"
                )
                image_status = ImageStatus.MALFORMED
                fallbacks["image"] = FallbackReason.MALFORMED_IMAGE
                fallbacks["title"] = FallbackReason.MALFORMED_IMAGE
                title = self.display.placeholder_title

        return RenderModel(
            cover_title=title,
            cover_image=cover_image,
            author=author,
            shared_at=from_epoch_ms(shared_at_ms, now.tzinfo),
            like_count=like_count,
            action_done_today=is_action_done_today(last_action_ms, now, self.tz),
            relative_time_label=format_relative_time(shared_at_ms, now_ms, self.tz),
            nearby_count=nearby_count,
            image_status=image_status,
            fallbacks=fallbacks,
        )


def resolve(
    snapshot: KeyValueSnapshot,
    now: datetime | None = None,
    *,
    config: AppConfig | None = None,
) -> RenderModel:
    """Resolve with the application config and, by default, the current time."""
    resolver = ViewModelResolver.from_config(config or get_config())
    return resolver.resolve(snapshot, now if now is not None else datetime.now(resolver.tz))

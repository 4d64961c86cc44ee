"""Presentation models for the FamilyVerse widget.

The resolver produces exactly one ``RenderModel`` per refresh. Models are
frozen pydantic objects: they are built fresh for every resolution, handed
to the render targets, and discarded.

Models follow a simple flow:
1. RAW STATE (KeyValueSnapshot, see ``familyverse.store``)
2. DECODED PARTS (CoverImage, ImageStatus)
3. PRESENTATION (RenderModel)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class ImageStatus(str, Enum):
    """Outcome of resolving the cover image field."""

    ABSENT = "absent"
    DECODED = "decoded"
    MALFORMED = "malformed"


class FallbackReason(str, Enum):
    """Why a field degraded to its default value.

    Attributes:
        MISSING_FIELD: No candidate key was present in the snapshot.
        TYPE_MISMATCH: A candidate key was present but held an unusable value.
        MALFORMED_IMAGE: The image envelope could not be decoded.
    """

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    MALFORMED_IMAGE = "malformed_image"


# =============================================================================
# Models
# =============================================================================


class CoverImage(BaseModel):
    """A decoded cover image ready for the image slot.

    Attributes:
        data: Raw image bytes as decoded from the base64 payload.
        meta: The envelope's metadata segment, e.g. ``data:image/png;base64``.
        format: Image format detected by Pillow (``PNG``, ``JPEG``...).
        width: Pixel width.
        height: Pixel height.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    meta: str = ""
    format: str | None = None
    width: int = Field(ge=1)
    height: int = Field(ge=1)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def mime_type(self) -> str | None:
        """MIME type derived from the detected format, if known."""
        if not self.format:
            return None
        return f"image/{self.format.lower()}"


class RenderModel(BaseModel):
    """Everything the widget layout needs for one refresh.

    Attributes:
        cover_title: Title for the title slot; never empty.
        cover_image: Decoded cover, or None when the placeholder should show.
        author: Author of the featured memory.
        shared_at: When the featured memory was shared (timezone-aware).
        like_count: Number of likes, never negative.
        action_done_today: Whether today's picture has already been taken.
        relative_time_label: Human label for ``shared_at`` such as ``"3h ago"``.
        nearby_count: Number of nearby stories reported by the companion app.
        image_status: How the cover image field resolved.
        fallbacks: Fields that degraded to a default and why.
    """

    model_config = ConfigDict(frozen=True)

    cover_title: str = Field(min_length=1)
    cover_image: CoverImage | None = None
    author: str = Field(min_length=1)
    shared_at: datetime
    like_count: int = Field(default=0, ge=0)
    action_done_today: bool = False
    relative_time_label: str
    nearby_count: int = Field(default=0, ge=0)
    image_status: ImageStatus = ImageStatus.ABSENT
    fallbacks: dict[str, FallbackReason] = Field(default_factory=dict)

    @field_validator("shared_at")
    @classmethod
    def require_aware(cls, v: datetime) -> datetime:
        """Reject naive datetimes; the resolver always supplies a zone."""
        if v.tzinfo is None:
            raise ValueError("shared_at must be timezone-aware")
        return v

    def to_summary(self) -> dict[str, object]:
        """JSON-friendly view of the model, without the image bytes."""
        return {
            "cover_title": self.cover_title,
            "cover_image": (
                {
                    "format": self.cover_image.format,
                    "width": self.cover_image.width,
                    "height": self.cover_image.height,
                    "bytes": len(self.cover_image.data),
                }
                if self.cover_image
                else None
            ),
            "author": self.author,
            "shared_at": self.shared_at.isoformat(),
            "like_count": self.like_count,
            "action_done_today": self.action_done_today,
            "relative_time_label": self.relative_time_label,
            "nearby_count": self.nearby_count,
            "image_status": self.image_status.value,
            "fallbacks": {name: reason.value for name, reason in sorted(self.fallbacks.items())},
        }

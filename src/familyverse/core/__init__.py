"""Core derivation logic for the widget.

This package turns raw store state into what the widget shows:

- **KeySchema**: which stored key wins for every logical field
- **decode_image_envelope**: typed decode of the cover image payload
- **timefmt**: day boundaries and relative-time labels
- **ViewModelResolver**: the pure ``(snapshot, now) -> RenderModel`` function
"""

from familyverse.core.imaging import DecodedImage, MalformedImage, decode_image_envelope
from familyverse.core.models import CoverImage, FallbackReason, ImageStatus, RenderModel
from familyverse.core.resolver import ViewModelResolver, resolve
from familyverse.core.schema import FieldSpec, KeySchema, Lookup

__all__ = [
    "CoverImage",
    "DecodedImage",
    "FallbackReason",
    "FieldSpec",
    "ImageStatus",
    "KeySchema",
    "Lookup",
    "MalformedImage",
    "RenderModel",
    "ViewModelResolver",
    "decode_image_envelope",
    "resolve",
]

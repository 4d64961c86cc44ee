"""Cover image envelope decoding.

The companion app stores the featured memory's cover as a data-URI-like
envelope, ``"<meta>,<base64 payload>"``, for example
``"data:image/png;base64,iVBORw0KGgo..."``. Only the second segment is
image data.

Decoding never raises. It returns either a ``DecodedImage`` or a
``MalformedImage`` carrying the reason, and the resolver decides what the
widget shows in each case.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from familyverse.core.models import CoverImage

# Reasons reported by MalformedImage
MISSING_SEPARATOR = "missing_separator"
INVALID_BASE64 = "invalid_base64"
EMPTY_PAYLOAD = "empty_payload"
UNREADABLE_IMAGE = "unreadable_image"


@dataclass(frozen=True)
class DecodedImage:
    """Successful decode; ``image`` is ready for the render model."""

    image: CoverImage


@dataclass(frozen=True)
class MalformedImage:
    """Failed decode and why."""

    reason: str
    detail: str = ""


ImageDecodeResult = DecodedImage | MalformedImage


def decode_image_envelope(value: str) -> ImageDecodeResult:
    """Decode a ``"<meta>,<base64>"`` envelope into a verified cover image.

    The payload must be strict base64 and must open as an image Pillow
    recognizes; the pixel data is verified and fully decoded, not just the header.

    Args:
        value: Raw envelope string from the store.

    Returns:
        DecodedImage with the original bytes, or MalformedImage.

    Example:
        >>> result = decode_image_envelope("data:image/png;base64," + payload)
        >>> isinstance(result, DecodedImage)
        True
    """
    segments = value.split(",")
    if len(segments) < 2:
        return MalformedImage(MISSING_SEPARATOR)

    meta, payload = segments[0], segments[1]
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        return MalformedImage(INVALID_BASE64, str(e))

    if not data:
        return MalformedImage(EMPTY_PAYLOAD)

    try:
        with Image.open(BytesIO(data)) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
        # verify() only checks some formats (JPEG not at all); decoding catches truncation
        with Image.open(BytesIO(data)) as img:
            img.load()
    except Exception as e:
        # Pillow reports truncated or corrupt pixel data through many exception types
        return MalformedImage(UNREADABLE_IMAGE, f"{type(e).__name__}: {e}")

    if width < 1 or height < 1:
        return MalformedImage(UNREADABLE_IMAGE, f"empty canvas {width}x{height}")

    return DecodedImage(
        CoverImage(data=data, meta=meta, format=image_format, width=width, height=height)
    )


def load_cover(image: CoverImage) -> Image.Image:
    """Open a decoded cover as a fully loaded Pillow image.

    Used by ``save_cover`` to re-encode the cover into the format a target path asks for.
    """
    with Image.open(BytesIO(image.data)) as img:
        img.load()
        return img.copy()

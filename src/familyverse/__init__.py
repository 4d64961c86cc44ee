"""FamilyVerse home-screen widget state synchronizer.

Reads the shared key-value store written by the FamilyVerse companion app,
derives a presentation model for the home-screen widget, and hands it to
render targets.

Example:
    >>> from familyverse import DictSnapshot, ViewModelResolver
    >>> snapshot = DictSnapshot({"flutter.flutter.featured_memory_title": "Beach Day"})
    >>> model = ViewModelResolver().resolve(snapshot, now)
    >>> model.cover_title
    'Beach Day'
"""

from familyverse.core.models import CoverImage, FallbackReason, ImageStatus, RenderModel
from familyverse.core.resolver import ViewModelResolver, resolve
from familyverse.errors import FamilyVerseError
from familyverse.store.snapshot import DictSnapshot, KeyValueSnapshot

__version__ = "1.0.0"

__all__ = [
    "CoverImage",
    "DictSnapshot",
    "FallbackReason",
    "FamilyVerseError",
    "ImageStatus",
    "KeyValueSnapshot",
    "RenderModel",
    "ViewModelResolver",
    "resolve",
    "__version__",
]

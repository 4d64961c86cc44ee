"""Map a RenderModel onto the widget's fixed layout slots.

The widget layout has named slots (image, title, author/date, likes,
status, nearby). Renderers never look at the model directly; they receive a
``WidgetSlots`` value, so every render target shows the same text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from familyverse.config import DisplayConfig
from familyverse.core.models import CoverImage, RenderModel


@dataclass(frozen=True)
class WidgetSlots:
    """Slot contents for one widget paint.

    Attributes:
        image: Decoded cover, or None to paint ``placeholder_image``.
        placeholder_image: Resource name for the placeholder cover.
        title: Title slot text.
        author_date: Author and relative time, e.g. ``"Grandma · 3h ago"``.
        likes: Likes slot text.
        status: Today's picture status text.
        nearby: Nearby stories text, empty when there are none.
    """

    image: CoverImage | None
    placeholder_image: str
    title: str
    author_date: str
    likes: str
    status: str
    nearby: str = ""

    @property
    def shows_placeholder(self) -> bool:
        return self.image is None


class WidgetRenderer(Protocol):
    """A render target for one widget instance."""

    def render(self, instance_id: int, slots: WidgetSlots) -> None: ...


def build_slots(model: RenderModel, display: DisplayConfig | None = None) -> WidgetSlots:
    """Fill the layout slots from a resolved model.

    Args:
        model: Output of the resolver.
        display: Status texts and placeholder resource; defaults if omitted.
    """
    display = display or DisplayConfig()
    likes = "1 like" if model.like_count == 1 else f"{model.like_count} likes"
    if model.nearby_count == 0:
        nearby = ""
    elif model.nearby_count == 1:
        nearby = "1 story nearby"
    else:
        nearby = f"{model.nearby_count} stories nearby"

    return WidgetSlots(
        image=model.cover_image,
        placeholder_image=display.placeholder_image,
        title=model.cover_title,
        author_date=f"{model.author} · {model.relative_time_label}",
        likes=likes,
        status=display.status_done if model.action_done_today else display.status_pending,
        nearby=nearby,
    )

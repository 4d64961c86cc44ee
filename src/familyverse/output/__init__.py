"""Output side of the widget: layout slots and render targets."""

from familyverse.output.console import ConsoleRenderer, save_cover
from familyverse.output.slots import WidgetRenderer, WidgetSlots, build_slots

__all__ = [
    "ConsoleRenderer",
    "WidgetRenderer",
    "WidgetSlots",
    "build_slots",
    "save_cover",
]

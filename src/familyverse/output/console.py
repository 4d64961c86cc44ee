"""Terminal render target built on Rich.

Paints the widget slots as a bordered panel so the derived state can be
inspected without a device. Also usable as a ``WidgetRenderer`` for the
host's refresh fan-out.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from familyverse.core.imaging import load_cover
from familyverse.output.slots import WidgetSlots


class ConsoleRenderer:
    """Render widget slots to a Rich console.

    Attributes:
        console: Target console; a new stdout console if not given.
        rendered: Instance ids painted so far, in order.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.rendered: list[int] = []

    def render(self, instance_id: int, slots: WidgetSlots) -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="dim", justify="right")
        table.add_column()

        table.add_row("cover", _describe_image(slots))
        table.add_row("title", f"[bold]{escape(slots.title)}[/bold]")
        table.add_row("shared", escape(slots.author_date))
        table.add_row("likes", f"♥ {slots.likes}")
        if slots.nearby:
            table.add_row("nearby", escape(slots.nearby))
        table.add_row("today", escape(slots.status))

        self.console.print(
            Panel(table, title=f"FamilyVerse widget #{instance_id}", border_style="magenta", expand=False)
        )
        self.rendered.append(instance_id)


def save_cover(slots: WidgetSlots, path: Path) -> bool:
    """Write the decoded cover to ``path``; returns False for the placeholder.

    The image is re-encoded in the format implied by the file suffix, so a
    PNG cover can be exported as ``cover.jpg``.

    Raises:
        ValueError: If Pillow has no writer for the suffix.
        OSError: If the file cannot be written.
    """
    if slots.image is None:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    img = load_cover(slots.image)
    if img.mode not in ("RGB", "L") and path.suffix.lower() in (".jpg", ".jpeg"):
        img = img.convert("RGB")
    img.save(path)
    return True


def _describe_image(slots: WidgetSlots) -> str:
    if slots.image is None:
        return f"[yellow]{slots.placeholder_image}[/yellow] (placeholder)"
    cover = slots.image
    return f"{cover.format} {cover.width}x{cover.height}, {len(cover.data):,} bytes"

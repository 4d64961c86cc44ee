"""Refresh cycle: one resolution, fanned out to every widget instance.

The OS may host several instances of the widget. None of them carries
instance-specific data, so each refresh reads the store once, resolves one
``RenderModel``, builds one set of slots, and hands that same value to
every registered render target.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from familyverse.config import DisplayConfig
from familyverse.core.models import RenderModel
from familyverse.core.resolver import ViewModelResolver
from familyverse.output.slots import WidgetRenderer, WidgetSlots, build_slots
from familyverse.store.snapshot import KeyValueSnapshot
from familyverse.utils.logging import LogContext

logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], KeyValueSnapshot]
Clock = Callable[[], datetime]


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle.

    Attributes:
        model: The model every instance was rendered from.
        slots: The slot values handed to every renderer.
        rendered: Instance ids that painted successfully.
        failed: Instance ids whose renderer raised, with the error text.
    """

    model: RenderModel
    slots: WidgetSlots
    rendered: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class WidgetHost:
    """Drives render targets from store snapshots on refresh requests.

    Args:
        snapshot_provider: Returns the current store snapshot; called once per refresh.
        resolver: Turns the snapshot into a model.
        display: Texts used when filling slots.
        clock: Current time source; ``datetime.now`` in the resolver's zone by default.

    Example:
        >>> host = WidgetHost(store.snapshot, ViewModelResolver())
        >>> host.register(1, ConsoleRenderer())
        >>> host.refresh().rendered
        [1]
    """

    def __init__(
        self,
        snapshot_provider: SnapshotProvider,
        resolver: ViewModelResolver | None = None,
        display: DisplayConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.snapshot_provider = snapshot_provider
        self.resolver = resolver or ViewModelResolver()
        self.display = display or self.resolver.display
        self.clock = clock or (lambda: datetime.now(self.resolver.tz))
        self._renderers: dict[int, WidgetRenderer] = {}
        self.last_result: RefreshResult | None = None

    @property
    def instance_ids(self) -> list[int]:
        return sorted(self._renderers)

    def register(self, instance_id: int, renderer: WidgetRenderer) -> None:
        """Attach a render target; replaces any renderer already at ``instance_id``."""
        self._renderers[instance_id] = renderer

    def unregister(self, instance_id: int) -> None:
        self._renderers.pop(instance_id, None)

    def refresh(self) -> RefreshResult:
        """Re-read the store and repaint every registered instance.

        A renderer that raises is logged and recorded in ``failed``; the
        remaining instances are still painted.
        """
        with LogContext(f"Widget refresh ({len(self._renderers)} instances)", logger=logger):
            snapshot = self.snapshot_provider()
            model = self.resolver.resolve(snapshot, self.clock())
            slots = build_slots(model, self.display)
            result = RefreshResult(model=model, slots=slots)

            for instance_id in self.instance_ids:
                renderer = self._renderers[instance_id]
                try:
                    renderer.render(instance_id, slots)
                except Exception as e:
                    logger.error(f"Render failed for widget {instance_id}: {e}")
                    result.failed[instance_id] = str(e)
                else:
                    result.rendered.append(instance_id)

        if model.fallbacks:
            logger.info(
                "Rendered with defaults for: "
                + ", ".join(f"{name} ({reason.value})" for name, reason in sorted(model.fallbacks.items()))
            )
        self.last_result = result
        return result

"""Widget host side: refresh fan-out and companion app calls.

Exports:
    - WidgetHost: one resolution per refresh, painted on every instance
    - RefreshResult: what a refresh cycle rendered
    - CompanionBridge: applies companion app write calls and triggers refreshes
"""

from familyverse.host.bridge import CompanionBridge
from familyverse.host.refresh import RefreshResult, WidgetHost

__all__ = [
    "CompanionBridge",
    "RefreshResult",
    "WidgetHost",
]

"""Chrome DevTools Protocol host integration."""

from __future__ import annotations

from .bridge import CdpPlatformBridge
from .connection import CdpConnection, list_targets, pick_page_target
from .observer_script import BINDING_NAME, OBSERVER_SCRIPT_SOURCE, observer_script

__all__ = [
    "BINDING_NAME",
    "OBSERVER_SCRIPT_SOURCE",
    "CdpConnection",
    "CdpPlatformBridge",
    "list_targets",
    "observer_script",
    "pick_page_target",
]

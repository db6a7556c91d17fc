"""Host-platform boundary: raw entries, node scoping and the feed hub."""

from __future__ import annotations

from .boundary import ElementBoundary, NodeRef, ScopeBoundary, node_label
from .entries import (
    LayoutShift,
    LayoutShiftAttribution,
    NavigationTiming,
    OtherEntry,
    PaintTiming,
    RawEntry,
    ResourceTiming,
    parse_entry,
)
from .feed import DEFAULT_SUPPORTED_ENTRY_TYPES, Observation, PlatformFeed

__all__ = [
    "DEFAULT_SUPPORTED_ENTRY_TYPES",
    "ElementBoundary",
    "LayoutShift",
    "LayoutShiftAttribution",
    "NavigationTiming",
    "NodeRef",
    "Observation",
    "OtherEntry",
    "PaintTiming",
    "PlatformFeed",
    "RawEntry",
    "ResourceTiming",
    "ScopeBoundary",
    "node_label",
    "parse_entry",
]

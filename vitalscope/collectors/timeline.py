"""Unified performance timeline (paint, resource, navigation, layout-shift).

Entries are kept in a keyed map so buffered replays never double-count. When
the map outgrows its caps the *earliest* entries by start time are kept:
resources are capped first, then the whole set.

With a session anchor (`set_session_start`), the emitted model only contains
entries at or after the anchor, with the anchor subtracted (0 = session start)
and `time_origin` 0. Without an anchor, start times stay in platform time and
`time_origin` is the page's time origin.
"""

from __future__ import annotations

import logging
import re

from ..models.timeline import LAYOUT_SHIFT_MIN_DURATION, TIMELINE_ENTRY_TYPES, TimelineEntry, TimelineModel
from ..platform.entries import LayoutShift, NavigationTiming, OtherEntry, PaintTiming, RawEntry, ResourceTiming
from ..platform.feed import PlatformFeed
from .base import Collector
from .network import url_pathname

_LOGGER = logging.getLogger("vitalscope.collectors.timeline")

MAX_ENTRIES = 80
RESOURCE_LIMIT = 50

_WS_RE = re.compile(r"\s+")


def entry_id(entry_type: str, name: str, start_time: float) -> str:
    """Stable identity key: type + truncated name + start time."""
    return _WS_RE.sub("_", f"{entry_type}-{name[:80]}-{start_time:.2f}")


def normalize_entry(entry: RawEntry) -> TimelineEntry | None:
    """Map a raw entry to a TimelineEntry; None for unrecognized types."""
    detail: str | None = None
    value: float | None = None

    if isinstance(entry, PaintTiming):
        entry_type = "paint"
        name = entry.name or "paint"
        detail = entry.name or None
    elif isinstance(entry, ResourceTiming):
        entry_type = "resource"
        if entry.name:
            path = url_pathname(entry.name)
            name = path if path is not None else (entry.name[:60] or "resource")
        else:
            name = "resource"
        detail = entry.initiator_type or None
    elif isinstance(entry, NavigationTiming):
        entry_type = "navigation"
        name = "Document"
        detail = entry.navigation_type
    elif isinstance(entry, LayoutShift):
        entry_type = "layout-shift"
        name = "Layout shift"
        value = entry.value
        detail = f"Score: {entry.value:.3f}"
    elif isinstance(entry, OtherEntry):
        return None
    else:
        raise TypeError(f"unsupported entry: {type(entry).__name__}")

    duration = entry.duration
    if entry_type == "layout-shift" and duration == 0:
        duration = LAYOUT_SHIFT_MIN_DURATION

    return TimelineEntry(
        id=entry_id(entry_type, name, entry.start_time),
        name=name,
        start_time=entry.start_time,
        duration=duration,
        entry_type=entry_type,
        detail=detail,
        value=value,
    )


class TimelineCollector(Collector):
    name = "timeline"

    def __init__(
        self,
        feed: PlatformFeed,
        *,
        session_start_time: float | None = None,
        max_entries: int = MAX_ENTRIES,
        resource_limit: int = RESOURCE_LIMIT,
    ) -> None:
        super().__init__(feed)
        self.max_entries = max(1, int(max_entries))
        self.resource_limit = max(0, int(resource_limit))
        self.session_start_time = session_start_time
        self._entries: dict[str, TimelineEntry] = {}
        self.model = TimelineModel(time_origin=self._time_origin())

    def __len__(self) -> int:
        return len(self._entries)

    def _time_origin(self) -> float:
        return 0.0 if self.session_start_time is not None else self.feed.time_origin

    def _on_mount(self) -> None:
        for entry_type in TIMELINE_ENTRY_TYPES:
            self._observe(entry_type, self.ingest)
        self._flush()

    def ingest(self, batch: list[RawEntry]) -> bool:
        """Add new entries from one platform batch; True when the model changed."""
        changed = False
        for raw in batch:
            normalized = normalize_entry(raw)
            if normalized is None:
                continue
            if normalized.id in self._entries:
                continue
            self._entries[normalized.id] = normalized
            changed = True
        if not changed:
            return False
        self._enforce_bounds()
        self._flush()
        return True

    def _enforce_bounds(self) -> None:
        entries = list(self._entries.values())
        resources = [e for e in entries if e.entry_type == "resource"]
        if len(resources) > self.resource_limit:
            others = [e for e in entries if e.entry_type != "resource"]
            kept = sorted(resources, key=lambda e: e.start_time)[: self.resource_limit]
            _LOGGER.debug("timeline resource cap: dropping %d newest", len(resources) - len(kept))
            entries = others + kept
        if len(entries) > self.max_entries:
            entries = sorted(entries, key=lambda e: e.start_time)[: self.max_entries]
        if len(entries) != len(self._entries):
            self._entries = {e.id: e for e in entries}

    def set_session_start(self, session_start_time: float | None) -> None:
        if session_start_time == self.session_start_time:
            return
        self.session_start_time = session_start_time
        self._flush()

    def _flush(self) -> None:
        start = self.session_start_time
        if start is not None:
            entries = [
                TimelineEntry(
                    id=e.id,
                    name=e.name,
                    start_time=e.start_time - start,
                    duration=e.duration,
                    entry_type=e.entry_type,
                    detail=e.detail,
                    value=e.value,
                )
                for e in self._entries.values()
                if e.start_time >= start
            ]
        else:
            entries = list(self._entries.values())
        self.model = TimelineModel.build(entries, time_origin=self._time_origin())
        if self.mounted:
            self._emit()

    def clear(self) -> None:
        self._entries.clear()
        self._flush()

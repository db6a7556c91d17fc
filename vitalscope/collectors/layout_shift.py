"""Layout-instability capture with optional spatial scoping.

With a boundary configured, only attribution sources whose node lies inside it
are kept, and a shift with no surviving source is discarded entirely. The
boundary is read at delivery time, so it may appear, move or vanish while the
collector runs; while it is absent every source is kept.
"""

from __future__ import annotations

import logging

from ..models.layout_shift import LayoutShiftEntryStored, LayoutShiftSourceStored
from ..models.snapshot import LayoutShiftSection
from ..platform.boundary import ScopeBoundary, node_label
from ..platform.entries import LayoutShift, LayoutShiftAttribution, RawEntry
from ..platform.feed import PlatformFeed
from .base import Collector

_LOGGER = logging.getLogger("vitalscope.collectors.layout_shift")


def _fmt_start(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


class LayoutShiftCollector(Collector):
    name = "layout_shift"

    def __init__(self, feed: PlatformFeed, *, boundary: ScopeBoundary | None = None) -> None:
        super().__init__(feed)
        self.boundary = boundary
        self.entries: list[LayoutShiftEntryStored] = []
        self.total_cls = 0.0
        self.supported = True
        self._counter = 0

    def section(self) -> LayoutShiftSection:
        return LayoutShiftSection(entries=tuple(self.entries), total_cls=self.total_cls)

    def _on_mount(self) -> None:
        self.supported = self._observe("layout-shift", self.ingest)

    def _in_scope(self, source: LayoutShiftAttribution) -> bool:
        boundary = self.boundary
        # An unresolved boundary scopes nothing.
        if boundary is None or not boundary.present:
            return True
        if source.node is None:
            return False
        return boundary.contains(source.node)

    def ingest(self, batch: list[RawEntry]) -> bool:
        added: list[LayoutShiftEntryStored] = []
        for shift in batch:
            if not isinstance(shift, LayoutShift) or not shift.sources:
                continue
            sources = tuple(
                LayoutShiftSourceStored(
                    node_label=node_label(src.node),
                    previous_rect=src.previous_rect,
                    current_rect=src.current_rect,
                )
                for src in shift.sources
                if self._in_scope(src)
            )
            if not sources:
                _LOGGER.debug("layout shift at %.1f has no sources in scope", shift.start_time)
                continue
            self._counter += 1
            added.append(
                LayoutShiftEntryStored(
                    id=f"cls-{self._counter}-{_fmt_start(shift.start_time)}",
                    value=shift.value,
                    had_recent_input=shift.had_recent_input,
                    start_time=shift.start_time,
                    sources=sources,
                )
            )
        if not added:
            return False
        self.entries.extend(added)
        for entry in added:
            self.total_cls += entry.value
        self._emit()
        return True

    def clear(self) -> None:
        self.entries = []
        self.total_cls = 0.0
        self._emit()

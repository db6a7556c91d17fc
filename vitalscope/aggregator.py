"""Merge collector outputs into the session snapshot while recording."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from .collectors.layout_shift import LayoutShiftCollector
from .collectors.network import NetworkCollector, url_origin
from .collectors.timeline import TimelineCollector
from .collectors.web_vitals import WebVitalsCollector
from .models.network import NetworkResourceEntry, network_end_time
from .models.snapshot import NetworkSection, SnapshotUpdate
from .session import InstrumentationSession

_LOGGER = logging.getLogger("vitalscope.aggregator")


def session_scoped_network(
    entries: Iterable[NetworkResourceEntry],
    session_start_time: float | None,
    page_origin: str | None,
) -> NetworkSection:
    """Restrict resources to the page's own origin since the session anchor.

    Start times are re-anchored so 0 is the session start. Without an anchor
    the section is empty. An empty `page_origin` disables the origin check.
    """
    if session_start_time is None:
        return NetworkSection()
    scoped: list[NetworkResourceEntry] = []
    for entry in entries:
        if entry.start_time < session_start_time:
            continue
        if page_origin and url_origin(entry.url) != page_origin:
            continue
        scoped.append(replace(entry, start_time=entry.start_time - session_start_time))
    return NetworkSection(entries=tuple(scoped), end_time=network_end_time(scoped))


class SnapshotAggregator:
    def __init__(
        self,
        session: InstrumentationSession,
        *,
        web_vitals: WebVitalsCollector,
        timeline: TimelineCollector,
        network: NetworkCollector,
        layout_shift: LayoutShiftCollector,
        page_origin: Callable[[], str | None] = lambda: None,
    ) -> None:
        self.session = session
        self.web_vitals = web_vitals
        self.timeline = timeline
        self.network = network
        self.layout_shift = layout_shift
        self.page_origin = page_origin
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def attach(self) -> None:
        if self._unsubscribers:
            return
        for collector in (self.web_vitals, self.timeline, self.network, self.layout_shift):
            self._unsubscribers.append(collector.subscribe(self._on_collector_change))
        self._unsubscribers.append(self.session.subscribe(self._on_session_event))
        _LOGGER.debug("aggregator attached to %d collectors", len(self._unsubscribers) - 1)

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_collector_change(self, _collector: object) -> None:
        self.publish()

    def _on_session_event(self, event: str, _session: InstrumentationSession) -> None:
        if event == "started":
            self.publish()

    def build_update(self) -> SnapshotUpdate:
        return SnapshotUpdate(
            web_vitals=self.web_vitals.section(),
            timeline=self.timeline.model,
            network=session_scoped_network(
                self.network.entries,
                self.session.session_start_time,
                self.page_origin(),
            ),
            layout_shift=self.layout_shift.section(),
        )

    def publish(self) -> bool:
        """Forward current collector state; no-op unless the session is recording."""
        if not self.session.is_recording:
            return False
        self.session.update_snapshot(self.build_update())
        return True

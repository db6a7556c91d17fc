"""Wiring of collectors, aggregator and session for one page."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any

from .aggregator import SnapshotAggregator
from .collectors.layout_shift import LayoutShiftCollector
from .collectors.network import NetworkCollector
from .collectors.timeline import TimelineCollector
from .collectors.web_vitals import VitalForwarder, WebVitalsCollector
from .config import InstrumentationConfig
from .models.snapshot import InstrumentationSnapshot, RunRecord
from .models.suggestions import Suggestion
from .platform.boundary import ScopeBoundary
from .platform.feed import PlatformFeed
from .session import InstrumentationSession, provide
from .suggestions import analyze

_LOGGER = logging.getLogger("vitalscope.pipeline")


class InstrumentationPipeline:
    def __init__(
        self,
        feed: PlatformFeed,
        session: InstrumentationSession | None = None,
        *,
        config: InstrumentationConfig | None = None,
        forwarder: VitalForwarder | None = None,
        boundary: ScopeBoundary | None = None,
    ) -> None:
        cfg = config or InstrumentationConfig()
        self.config = cfg
        self.feed = feed
        self.session = session or InstrumentationSession(clock=feed.now, max_runs_history=cfg.max_runs_history)

        self.web_vitals = WebVitalsCollector(feed, forwarder=forwarder, max_history=cfg.vitals_history)
        self.timeline = TimelineCollector(
            feed,
            session_start_time=self.session.session_start_time,
            max_entries=cfg.timeline_max_entries,
            resource_limit=cfg.timeline_resource_limit,
        )
        self.network = NetworkCollector(feed)
        self.layout_shift = LayoutShiftCollector(feed, boundary=boundary)
        self.aggregator = SnapshotAggregator(
            self.session,
            web_vitals=self.web_vitals,
            timeline=self.timeline,
            network=self.network,
            layout_shift=self.layout_shift,
            page_origin=lambda: self.feed.origin,
        )
        self._unsubscribe_session: Callable[[], None] | None = None

    @property
    def collectors(self) -> tuple[Any, ...]:
        return (self.web_vitals, self.timeline, self.network, self.layout_shift)

    @property
    def mounted(self) -> bool:
        return self._unsubscribe_session is not None

    @property
    def snapshot(self) -> InstrumentationSnapshot:
        return self.session.snapshot

    # ──────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────

    def mount(self) -> None:
        if self.mounted:
            return
        # Anchor sync runs before the aggregator sees "started".
        self._unsubscribe_session = self.session.subscribe(self._on_session_event)
        self.timeline.set_session_start(self.session.session_start_time)
        self.aggregator.attach()
        for collector in self.collectors:
            collector.mount()
        _LOGGER.info("pipeline mounted origin=%s", self.feed.origin or "-")

    def unmount(self) -> None:
        if not self.mounted:
            return
        for collector in self.collectors:
            collector.unmount()
        self.aggregator.detach()
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
        self._unsubscribe_session = None
        _LOGGER.info("pipeline unmounted")

    def __enter__(self) -> InstrumentationPipeline:
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def _on_session_event(self, event: str, session: InstrumentationSession) -> None:
        if event in {"started", "reset"}:
            self.timeline.set_session_start(session.session_start_time)
        if event == "reset":
            self.network.clear()
            self.layout_shift.clear()

    # ──────────────────────────────────────────────────────────────────
    # Session controls
    # ──────────────────────────────────────────────────────────────────

    def start_recording(self) -> bool:
        return self.session.start()

    def stop_recording(self) -> RunRecord | None:
        return self.session.stop()

    def reset(self) -> None:
        self.session.reset()

    def clear_history(self) -> None:
        self.session.clear_history()

    def provide(self) -> AbstractContextManager[InstrumentationSession]:
        return provide(self.session)

    def suggestions(self) -> list[Suggestion]:
        return analyze(self.session.snapshot)

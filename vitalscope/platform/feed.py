"""In-process platform feed: the seam between the host page and collectors.

`PlatformFeed` plays the role of the browser's PerformanceObserver registry
and the vitals reporting library at once:

- `observe(entry_type, cb, buffered=True)` subscribes to one entry type; with
  `buffered=True` already-dispatched entries are replayed first (which is why
  collectors must deduplicate).
- `on_vital(name, cb)` subscribes to one vital's reports.
- `dispatch(entries)` / `report_vital(report)` are called by the host adapter
  (see `vitalscope.cdp.bridge`) or directly by tests.

Callbacks run synchronously on the dispatching thread. A failing callback is
logged and never blocks delivery to the remaining observers.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any

from ..errors import UnsupportedEntryTypeError
from ..models.web_vitals import VitalReport
from .entries import RawEntry

_LOGGER = logging.getLogger("vitalscope.platform.feed")

DEFAULT_SUPPORTED_ENTRY_TYPES: tuple[str, ...] = (
    "paint",
    "resource",
    "navigation",
    "layout-shift",
    "largest-contentful-paint",
    "event",
    "longtask",
)

EntryCallback = Callable[[list[RawEntry]], None]
VitalCallback = Callable[[VitalReport], None]


class Observation:
    """Handle returned by `observe` / `on_vital`; `disconnect()` is idempotent."""

    def __init__(self, registry: list[Any], callback: Any) -> None:
        self._registry = registry
        self._callback = callback
        self.connected = True

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        try:
            self._registry.remove(self._callback)
        except ValueError:
            pass


class PlatformFeed:
    def __init__(
        self,
        *,
        supported_entry_types: Iterable[str] = DEFAULT_SUPPORTED_ENTRY_TYPES,
        origin: str = "",
        time_origin: float = 0.0,
        buffer_size: int = 1000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.supported_entry_types: tuple[str, ...] = tuple(supported_entry_types)
        self.origin = origin
        self.time_origin = time_origin
        self.buffer_size = max(1, int(buffer_size))
        self._clock = clock or (lambda: time.perf_counter() * 1000.0)
        self._clock_offset = 0.0
        self._observers: dict[str, list[EntryCallback]] = {}
        self._vital_handlers: dict[str, list[VitalCallback]] = {}
        self._buffers: dict[str, deque[RawEntry]] = {}

    # ──────────────────────────────────────────────────────────────────
    # Clock
    # ──────────────────────────────────────────────────────────────────

    def now(self) -> float:
        """High-resolution page time in ms (same origin as entry start times)."""
        return self._clock() + self._clock_offset

    def sync_clock(self, page_now: float) -> None:
        """Align `now()` with a page-reported `performance.now()` reading."""
        self._clock_offset = float(page_now) - self._clock()

    def configure(
        self,
        *,
        supported_entry_types: Iterable[str] | None = None,
        origin: str | None = None,
        time_origin: float | None = None,
    ) -> None:
        if supported_entry_types is not None:
            self.supported_entry_types = tuple(supported_entry_types)
        if origin is not None:
            self.origin = origin
        if time_origin is not None:
            self.time_origin = time_origin

    # ──────────────────────────────────────────────────────────────────
    # Performance entries
    # ──────────────────────────────────────────────────────────────────

    def supports(self, entry_type: str) -> bool:
        return entry_type in self.supported_entry_types

    def observe(self, entry_type: str, callback: EntryCallback, *, buffered: bool = True) -> Observation:
        if not self.supports(entry_type):
            raise UnsupportedEntryTypeError(entry_type)
        registry = self._observers.setdefault(entry_type, [])
        registry.append(callback)
        observation = Observation(registry, callback)
        if buffered:
            replay = list(self._buffers.get(entry_type, ()))
            if replay:
                self._deliver(callback, replay)
        return observation

    def entries_by_type(self, entry_type: str) -> list[RawEntry]:
        return list(self._buffers.get(entry_type, ()))

    def dispatch(self, entries: Iterable[RawEntry]) -> None:
        """Deliver a batch: each observer gets its type's entries in delivery order."""
        grouped: dict[str, list[RawEntry]] = {}
        for entry in entries:
            etype = entry.entry_type
            if not self.supports(etype):
                _LOGGER.debug("dropping entry of unsupported type %s", etype)
                continue
            grouped.setdefault(etype, []).append(entry)
            buf = self._buffers.get(etype)
            if buf is None:
                buf = self._buffers[etype] = deque(maxlen=self.buffer_size)
            buf.append(entry)

        for etype, batch in grouped.items():
            for callback in list(self._observers.get(etype, ())):
                self._deliver(callback, batch)

    def _deliver(self, callback: EntryCallback, batch: list[RawEntry]) -> None:
        try:
            callback(list(batch))
        except Exception:  # noqa: BLE001
            _LOGGER.exception("performance observer callback failed")

    # ──────────────────────────────────────────────────────────────────
    # Vitals
    # ──────────────────────────────────────────────────────────────────

    def on_vital(self, name: str, callback: VitalCallback) -> Observation:
        registry = self._vital_handlers.setdefault(name, [])
        registry.append(callback)
        return Observation(registry, callback)

    def report_vital(self, report: VitalReport) -> None:
        for callback in list(self._vital_handlers.get(report.name, ())):
            try:
                callback(report)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("vital report callback failed name=%s", report.name)

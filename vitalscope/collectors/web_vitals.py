"""Core Web Vitals capture.

Process-wide forwarding rules (`vital_forwarder`):

- Registration happens at most once per feed (`register_once`); repeat calls
  for an already registered feed are no-ops. A process may hold several feeds
  (reconnects, several tabs), and every registered feed forwards to the one
  active handler.
- Exactly one handler is active at a time. `activate(handler)` returns an
  `OwnershipToken` and replaces whatever owner was active (last writer wins).
- `deactivate(token)` clears the slot only when `token` is still the active
  owner, so a stale unmount can never evict a newer owner.
- Reports arriving while no handler is active are dropped.
- `reset()` is the teardown hook: it disconnects every feed registration and
  clears the owner (process shutdown, test isolation).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..models.snapshot import WebVitalsSection
from ..models.web_vitals import (
    WEB_VITALS_ORDER,
    VitalReport,
    WebVitalMetric,
    WebVitalName,
    WebVitalsSnapshot,
    to_vital_name,
)
from ..platform.feed import Observation, PlatformFeed
from .base import Collector

_LOGGER = logging.getLogger("vitalscope.collectors.web_vitals")

ReportHandler = Callable[[VitalReport], None]


@dataclass(frozen=True, eq=False)
class OwnershipToken:
    """Identity-compared claim on the forwarder's active-handler slot."""

    handler: ReportHandler
    owner: str = ""


@dataclass
class VitalForwarder:
    _active: OwnershipToken | None = field(default=None, repr=False)
    _registrations: dict[int, tuple[PlatformFeed, list[Observation]]] = field(default_factory=dict, repr=False)

    @property
    def registered(self) -> bool:
        return bool(self._registrations)

    def is_registered(self, feed: PlatformFeed) -> bool:
        held = self._registrations.get(id(feed))
        return held is not None and held[0] is feed

    def register_once(self, feed: PlatformFeed) -> bool:
        """Register with the feed for all vitals; True only on the first call for that feed."""
        if self.is_registered(feed):
            return False
        observations = [feed.on_vital(name, self.forward) for name in WEB_VITALS_ORDER]
        self._registrations[id(feed)] = (feed, observations)
        _LOGGER.debug(
            "vitals forwarder registered for %s (%d feeds)", ", ".join(WEB_VITALS_ORDER), len(self._registrations)
        )
        return True

    @property
    def active(self) -> OwnershipToken | None:
        return self._active

    def activate(self, handler: ReportHandler, *, owner: str = "") -> OwnershipToken:
        token = OwnershipToken(handler=handler, owner=owner)
        self._active = token
        return token

    def deactivate(self, token: OwnershipToken | None) -> bool:
        if token is None or self._active is not token:
            return False
        self._active = None
        return True

    def forward(self, report: VitalReport) -> None:
        token = self._active
        if token is None:
            return
        token.handler(report)

    def reset(self) -> None:
        for _, observations in self._registrations.values():
            for observation in observations:
                observation.disconnect()
        self._registrations.clear()
        self._active = None


vital_forwarder = VitalForwarder()


def _now_ms() -> int:
    return int(time.time() * 1000)


class WebVitalsCollector(Collector):
    """Latest value per vital plus a bounded history of value snapshots."""

    name = "web_vitals"

    def __init__(
        self,
        feed: PlatformFeed,
        *,
        forwarder: VitalForwarder | None = None,
        enabled: bool = True,
        max_history: int = 20,
    ) -> None:
        super().__init__(feed)
        self.forwarder = forwarder if forwarder is not None else vital_forwarder
        self.enabled = enabled
        self.max_history = max(1, int(max_history))
        self.metrics: dict[WebVitalName, WebVitalMetric] = {}
        self.history: list[WebVitalsSnapshot] = []
        self._latest: dict[str, float] = {}
        self._token: OwnershipToken | None = None

    @property
    def metrics_list(self) -> tuple[WebVitalMetric, ...]:
        return tuple(self.metrics[n] for n in WEB_VITALS_ORDER if n in self.metrics)

    def section(self) -> WebVitalsSection:
        return WebVitalsSection(metrics_list=self.metrics_list, history=tuple(self.history))

    def _on_mount(self) -> None:
        if self.enabled:
            self._activate()

    def _on_unmount(self) -> None:
        self._deactivate()

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self.enabled:
            return
        self.enabled = enabled
        if not self.mounted:
            return
        if enabled:
            self._activate()
        else:
            self._deactivate()

    def _activate(self) -> None:
        self._token = self.forwarder.activate(self._handle_report, owner=f"{self.name}@{id(self):x}")
        self.forwarder.register_once(self.feed)

    def _deactivate(self) -> None:
        if self.forwarder.deactivate(self._token):
            _LOGGER.debug("vitals collector released the forwarder")
        self._token = None

    def _handle_report(self, report: VitalReport) -> None:
        if not self.mounted:
            return
        name = to_vital_name(report.name)
        if name is None:
            return
        self.metrics[name] = WebVitalMetric.from_report(name, report)
        self._latest[name] = float(report.value)
        self.history.append(
            WebVitalsSnapshot(
                timestamp=_now_ms(),
                LCP=self._latest.get("LCP"),
                FCP=self._latest.get("FCP"),
                CLS=self._latest.get("CLS"),
                INP=self._latest.get("INP"),
                TTFB=self._latest.get("TTFB"),
            )
        )
        if len(self.history) > self.max_history:
            del self.history[: len(self.history) - self.max_history]
        self._emit()

    def clear(self) -> None:
        self.metrics.clear()
        self.history.clear()
        self._latest.clear()
        self._emit()

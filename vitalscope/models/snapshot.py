"""Aggregate session snapshot and run-history records.

The snapshot is immutable: `InstrumentationSession.update_snapshot` builds a new
instance per merge, so any reference handed to a reader stays a consistent,
read-only view of one point in time.
"""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, TypeVar

from .layout_shift import LayoutShiftEntryStored, LayoutShiftSourceStored, Rect
from .network import NetworkResourceEntry, NetworkTiming
from .timeline import TIMELINE_ENTRY_TYPES, TimelineEntry, TimelineModel
from .web_vitals import VitalReport, WebVitalMetric, WebVitalsSnapshot, to_vital_name

_SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True, slots=True)
class WebVitalsSection:
    metrics_list: tuple[WebVitalMetric, ...] = ()
    history: tuple[WebVitalsSnapshot, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "metricsList": [m.to_dict() for m in self.metrics_list],
            "history": [h.to_dict() for h in self.history],
        }


@dataclass(frozen=True, slots=True)
class NetworkSection:
    entries: tuple[NetworkResourceEntry, ...] = ()
    end_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [e.to_dict() for e in self.entries], "endTime": self.end_time}


@dataclass(frozen=True, slots=True)
class LayoutShiftSection:
    entries: tuple[LayoutShiftEntryStored, ...] = ()
    total_cls: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [e.to_dict() for e in self.entries], "totalCls": self.total_cls}


@dataclass(frozen=True, slots=True)
class InstrumentationSnapshot:
    web_vitals: WebVitalsSection = field(default_factory=WebVitalsSection)
    timeline: TimelineModel = field(default_factory=TimelineModel)
    network: NetworkSection = field(default_factory=NetworkSection)
    layout_shift: LayoutShiftSection = field(default_factory=LayoutShiftSection)

    def to_dict(self) -> dict[str, Any]:
        return {
            "webVitals": self.web_vitals.to_dict(),
            "timeline": self.timeline.to_dict(),
            "network": self.network.to_dict(),
            "layoutShift": self.layout_shift.to_dict(),
        }


def empty_snapshot() -> InstrumentationSnapshot:
    return InstrumentationSnapshot()


SectionPatch = Mapping[str, Any] | WebVitalsSection | TimelineModel | NetworkSection | LayoutShiftSection


@dataclass(frozen=True, slots=True)
class SnapshotUpdate:
    """Partial update; each provided section is shallow-merged into the snapshot."""

    web_vitals: SectionPatch | None = None
    timeline: SectionPatch | None = None
    network: SectionPatch | None = None
    layout_shift: SectionPatch | None = None


_S = TypeVar("_S")


def _merge_section(current: _S, patch: Any) -> _S:
    if patch is None:
        return current
    if isinstance(patch, type(current)):
        return patch
    if not isinstance(patch, Mapping):
        raise TypeError(f"cannot merge {type(patch).__name__} into {type(current).__name__}")
    known = {f.name for f in fields(current)}  # type: ignore[arg-type]
    unknown = set(patch) - known
    if unknown:
        raise TypeError(f"unknown {type(current).__name__} fields: {sorted(unknown)}")
    values = {k: tuple(v) if isinstance(v, list) else v for k, v in patch.items()}
    return replace(current, **values)  # type: ignore[type-var]


def merge_snapshot(snapshot: InstrumentationSnapshot, update: SnapshotUpdate) -> InstrumentationSnapshot:
    return InstrumentationSnapshot(
        web_vitals=_merge_section(snapshot.web_vitals, update.web_vitals),
        timeline=_merge_section(snapshot.timeline, update.timeline),
        network=_merge_section(snapshot.network, update.network),
        layout_shift=_merge_section(snapshot.layout_shift, update.layout_shift),
    )


@dataclass(frozen=True, slots=True)
class RunSummary:
    total_cls: float
    lcp: float | None
    fcp: float | None
    network_count: int
    timeline_entry_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCls": self.total_cls,
            "lcp": self.lcp,
            "fcp": self.fcp,
            "networkCount": self.network_count,
            "timelineEntryCount": self.timeline_entry_count,
        }


@dataclass(frozen=True, slots=True)
class RunRecord:
    session_id: str
    started_at: int
    stopped_at: int
    summary: RunSummary

    @property
    def duration_ms(self) -> int:
        return self.stopped_at - self.started_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "startedAt": self.started_at,
            "stoppedAt": self.stopped_at,
            "summary": self.summary.to_dict(),
        }


def generate_session_id() -> str:
    """Short unique session id: wall-clock ms plus a random suffix."""
    suffix = "".join(secrets.choice(_SESSION_SUFFIX_ALPHABET) for _ in range(6))
    return f"session-{int(time.time() * 1000)}-{suffix}"


def run_summary(snapshot: InstrumentationSnapshot) -> RunSummary:
    def vital(name: str) -> float | None:
        return next((m.value for m in snapshot.web_vitals.metrics_list if m.name == name), None)

    return RunSummary(
        total_cls=snapshot.layout_shift.total_cls,
        lcp=vital("LCP"),
        fcp=vital("FCP"),
        network_count=len(snapshot.network.entries),
        timeline_entry_count=len(snapshot.timeline.entries),
    )


# ──────────────────────────────────────────────────────────────────────────
# Loading a snapshot back from its `to_dict()` form
# ──────────────────────────────────────────────────────────────────────────


def _num(raw: Any, default: float = 0.0) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    return float(raw)


def _opt_num(raw: Any) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return float(raw)


def _items(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [it for it in raw if isinstance(it, dict)]


def _metric_from_dict(raw: dict[str, Any]) -> WebVitalMetric | None:
    name = to_vital_name(raw.get("name"))
    value = _opt_num(raw.get("value"))
    if name is None or value is None:
        return None
    report = VitalReport(
        name=name,
        value=value,
        id=str(raw.get("id") or ""),
        delta=_num(raw.get("delta")),
        navigation_type=str(raw.get("navigationType") or "navigate"),
    )
    return WebVitalMetric.from_report(name, report)


def _timeline_entry_from_dict(raw: dict[str, Any]) -> TimelineEntry | None:
    entry_type = raw.get("entryType")
    if entry_type not in TIMELINE_ENTRY_TYPES:
        return None
    detail = raw.get("detail")
    return TimelineEntry(
        id=str(raw.get("id") or ""),
        name=str(raw.get("name") or ""),
        start_time=_num(raw.get("startTime")),
        duration=_num(raw.get("duration")),
        entry_type=entry_type,
        detail=detail if isinstance(detail, str) else None,
        value=_opt_num(raw.get("value")),
    )


def _network_entry_from_dict(raw: dict[str, Any]) -> NetworkResourceEntry:
    timing_raw = raw.get("timing")
    timing = None
    if isinstance(timing_raw, dict):
        timing = NetworkTiming(
            dns=_opt_num(timing_raw.get("dns")),
            connect=_opt_num(timing_raw.get("connect")),
            request=_opt_num(timing_raw.get("request")),
            response=_opt_num(timing_raw.get("response")),
        )
    size = raw.get("size")
    return NetworkResourceEntry(
        id=str(raw.get("id") or ""),
        url=str(raw.get("url") or ""),
        name=str(raw.get("name") or ""),
        start_time=_num(raw.get("startTime")),
        duration=_num(raw.get("duration")),
        size=int(size) if isinstance(size, (int, float)) and not isinstance(size, bool) else None,
        type=str(raw.get("type") or "other"),
        timing=timing,
    )


def _shift_entry_from_dict(raw: dict[str, Any]) -> LayoutShiftEntryStored | None:
    sources = tuple(
        LayoutShiftSourceStored(
            node_label=str(s.get("nodeLabel") or "unknown"),
            previous_rect=Rect.from_any(s.get("previousRect")),
            current_rect=Rect.from_any(s.get("currentRect")),
        )
        for s in _items(raw.get("sources"))
    )
    if not sources:
        return None
    return LayoutShiftEntryStored(
        id=str(raw.get("id") or ""),
        value=_num(raw.get("value")),
        had_recent_input=bool(raw.get("hadRecentInput")),
        start_time=_num(raw.get("startTime")),
        sources=sources,
    )


def snapshot_from_dict(data: dict[str, Any]) -> InstrumentationSnapshot:
    """Rebuild a snapshot from `InstrumentationSnapshot.to_dict()` output (best-effort)."""
    if not isinstance(data, dict):
        raise TypeError("snapshot document must be a JSON object")

    wv = data.get("webVitals") if isinstance(data.get("webVitals"), dict) else {}
    metrics = tuple(m for m in (_metric_from_dict(it) for it in _items(wv.get("metricsList"))) if m is not None)
    history = tuple(
        WebVitalsSnapshot(
            timestamp=int(_num(h.get("timestamp"))),
            LCP=_opt_num(h.get("LCP")),
            FCP=_opt_num(h.get("FCP")),
            CLS=_opt_num(h.get("CLS")),
            INP=_opt_num(h.get("INP")),
            TTFB=_opt_num(h.get("TTFB")),
        )
        for h in _items(wv.get("history"))
    )

    tl = data.get("timeline") if isinstance(data.get("timeline"), dict) else {}
    timeline_entries = [e for e in (_timeline_entry_from_dict(it) for it in _items(tl.get("entries"))) if e is not None]

    net = data.get("network") if isinstance(data.get("network"), dict) else {}
    network_entries = tuple(_network_entry_from_dict(it) for it in _items(net.get("entries")))

    ls = data.get("layoutShift") if isinstance(data.get("layoutShift"), dict) else {}
    shift_entries = tuple(e for e in (_shift_entry_from_dict(it) for it in _items(ls.get("entries"))) if e is not None)

    return InstrumentationSnapshot(
        web_vitals=WebVitalsSection(metrics_list=metrics, history=history),
        timeline=TimelineModel.build(timeline_entries, time_origin=_num(tl.get("timeOrigin"))),
        network=NetworkSection(entries=network_entries, end_time=_num(net.get("endTime"))),
        layout_shift=LayoutShiftSection(entries=shift_entries, total_cls=_num(ls.get("totalCls"))),
    )

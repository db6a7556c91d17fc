from __future__ import annotations

from vitalscope.collectors.network import normalize_resource
from vitalscope.models.layout_shift import LayoutShiftEntryStored, LayoutShiftSourceStored, Rect
from vitalscope.models.snapshot import InstrumentationSnapshot, LayoutShiftSection, NetworkSection, WebVitalsSection
from vitalscope.models.timeline import TimelineEntry, TimelineModel
from vitalscope.models.web_vitals import VitalReport, WebVitalMetric
from vitalscope.platform.entries import ResourceTiming
from vitalscope.suggestions import analyze


def _metric(name: str, value: float) -> WebVitalMetric:
    return WebVitalMetric.from_report(name, VitalReport(name=name, value=value, id=f"v1-{name.lower()}"))  # type: ignore[arg-type]


def _shifts(*values: float) -> LayoutShiftSection:
    source = LayoutShiftSourceStored(node_label="div", previous_rect=Rect(), current_rect=Rect(0, 10, 10, 10))
    entries = tuple(
        LayoutShiftEntryStored(id=f"cls-{i}-{i}", value=v, had_recent_input=False, start_time=float(i), sources=(source,))
        for i, v in enumerate(values, start=1)
    )
    return LayoutShiftSection(entries=entries, total_cls=sum(values))


def _network(count: int) -> NetworkSection:
    entries = tuple(
        normalize_resource(ResourceTiming(name=f"https://app.example.com/{i}.js", start_time=float(i), duration=1.0))
        for i in range(count)
    )
    return NetworkSection(entries=entries, end_time=float(count))


def _timeline(count: int) -> TimelineModel:
    entries = [
        TimelineEntry(id=f"paint-p{i}-{i}.00", name=f"p{i}", start_time=float(i), duration=0.0, entry_type="paint")
        for i in range(count)
    ]
    return TimelineModel.build(entries, time_origin=0.0)


def _snapshot(**sections) -> InstrumentationSnapshot:
    return InstrumentationSnapshot(**sections)


def test_empty_snapshot_has_no_suggestions() -> None:
    assert analyze(_snapshot()) == []


def test_good_vitals_produce_nothing() -> None:
    snap = _snapshot(web_vitals=WebVitalsSection(metrics_list=(_metric("LCP", 1200.0), _metric("CLS", 0.01))))
    assert analyze(snap) == []


def test_poor_lcp_gives_one_high_error_suggestion() -> None:
    snap = _snapshot(web_vitals=WebVitalsSection(metrics_list=(_metric("LCP", 5000.0),)))
    suggestions = analyze(snap)
    assert len(suggestions) == 1
    s = suggestions[0]
    assert s.id == "vital-LCP-v1-lcp"
    assert (s.priority, s.severity, s.metric) == ("high", "error", "LCP")
    assert "5000 ms" in s.description
    assert "2500 ms" in s.description
    assert s.doc_url == "https://web.dev/vitals/"
    assert s.improvement_hint and s.improvement_hint.startswith("Optimize LCP")


def test_needs_improvement_inp_is_medium_warning() -> None:
    snap = _snapshot(web_vitals=WebVitalsSection(metrics_list=(_metric("INP", 300.0),)))
    (s,) = analyze(snap)
    assert (s.priority, s.severity) == ("medium", "warning")
    assert "needs improvement" in s.description
    assert "300 ms" in s.description


def test_large_cls_total_gives_error_summary() -> None:
    snap = _snapshot(layout_shift=_shifts(0.05, 0.05, 0.2))
    (s,) = analyze(snap)
    assert s.id == "layout-shift-summary"
    assert (s.priority, s.severity) == ("high", "error")
    assert "3 shift events" in s.description


def test_many_small_shifts_give_warning_summary() -> None:
    snap = _snapshot(layout_shift=_shifts(*([0.01] * 9)))
    (s,) = analyze(snap)
    assert s.id == "layout-shift-summary"
    assert (s.priority, s.severity) == ("medium", "warning")


def test_some_tiny_shifts_give_info() -> None:
    snap = _snapshot(layout_shift=_shifts(0.01, 0.01, 0.01, 0.01))
    (s,) = analyze(snap)
    assert s.id == "layout-shift-count"
    assert (s.priority, s.severity) == ("low", "info")


def test_many_requests_give_one_network_suggestion() -> None:
    suggestions = analyze(_snapshot(network=_network(45)))
    assert [(s.id, s.priority, s.severity) for s in suggestions] == [("network-count", "medium", "warning")]
    assert "45 requests" in suggestions[0].description


def test_timeline_activity_only_when_nothing_else_fired() -> None:
    busy = _timeline(61)
    assert [s.id for s in analyze(_snapshot(timeline=busy))] == ["timeline-activity"]
    assert [s.id for s in analyze(_snapshot(timeline=busy, network=_network(41)))] == ["network-count"]
    assert analyze(_snapshot(timeline=_timeline(60))) == []


def test_sorted_by_priority_then_severity_with_stable_ties() -> None:
    snap = _snapshot(
        web_vitals=WebVitalsSection(metrics_list=(_metric("FCP", 2000.0), _metric("LCP", 5000.0))),
        layout_shift=_shifts(*([0.005] * 9)),
        network=_network(41),
    )
    ids = [s.id for s in analyze(snap)]
    assert ids == ["vital-LCP-v1-lcp", "vital-FCP-v1-fcp", "layout-shift-summary", "network-count"]

from __future__ import annotations

import json

from vitalscope.collectors.network import normalize_resource
from vitalscope.models.snapshot import (
    InstrumentationSnapshot,
    NetworkSection,
    RunRecord,
    RunSummary,
    WebVitalsSection,
    snapshot_from_dict,
)
from vitalscope.models.suggestions import Suggestion
from vitalscope.models.web_vitals import VitalReport, WebVitalMetric
from vitalscope.platform.entries import ResourceTiming
from vitalscope.report import describe_run, format_duration, render_runs, render_snapshot, render_suggestions
from vitalscope.session import InstrumentationSession
from vitalscope.suggestions import analyze


def test_format_duration() -> None:
    assert format_duration(850) == "850 ms"
    assert format_duration(850.5) == "851 ms"
    assert format_duration(1234) == "1.2 s"


def test_describe_run() -> None:
    run = RunRecord(
        session_id="session-1-abcdef",
        started_at=0,
        stopped_at=5000,
        summary=RunSummary(total_cls=0.012, lcp=1230.0, fcp=None, network_count=14, timeline_entry_count=20),
    )
    assert describe_run(run) == "CLS 0.012 · LCP 1.23s · 14 req"


def test_render_snapshot_redacts_urls() -> None:
    entry = normalize_resource(
        ResourceTiming(name="https://app.example.com/api/me?token=secret", start_time=1.0, duration=20.0)
    )
    snap = InstrumentationSnapshot(network=NetworkSection(entries=(entry,), end_time=21.0))
    text = render_snapshot(snap)
    assert "https://app.example.com/api/me" in text
    assert "secret" not in text
    assert "Network: 1 requests" in text


def test_render_suggestions() -> None:
    assert "No suggestions" in render_suggestions([])
    text = render_suggestions(
        [
            Suggestion(
                id="network-count",
                title="Reduce number of network requests",
                description="45 requests were captured during the session.",
                priority="medium",
                severity="warning",
                metric="general",
                action="Review the network waterfall.",
            )
        ]
    )
    assert text.splitlines()[0] == "[medium/warning] Reduce number of network requests (general)"
    assert "next: Review the network waterfall." in text


def test_snapshot_json_document_reloads_for_analysis() -> None:
    metric = WebVitalMetric.from_report("LCP", VitalReport(name="LCP", value=5000.0, id="v1-lcp"))
    snap = InstrumentationSnapshot(web_vitals=WebVitalsSection(metrics_list=(metric,)))
    reloaded = snapshot_from_dict(json.loads(json.dumps(snap.to_dict())))
    assert reloaded.web_vitals.metrics_list == snap.web_vitals.metrics_list
    assert [s.id for s in analyze(reloaded)] == ["vital-LCP-v1-lcp"]


def test_render_runs_lists_session_history_newest_first() -> None:
    wall = iter([1_000, 3_500, 10_000, 10_750])
    ids = iter(["session-a", "session-b"])
    session = InstrumentationSession(clock=lambda: 0.0, wall_clock=lambda: next(wall), id_factory=lambda: next(ids))
    for _ in range(2):
        session.start()
        session.stop()

    lines = render_runs(session.runs_history).splitlines()
    assert lines == [
        "#0 session-b 750 ms  CLS 0.000 · 0 req",
        "#1 session-a 2.5 s  CLS 0.000 · 0 req",
    ]
    assert render_runs(()) == "(no runs)"

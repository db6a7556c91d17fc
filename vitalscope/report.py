"""Plain-text rendering of snapshots, runs and suggestions."""

from __future__ import annotations

from collections.abc import Iterable

from .models.snapshot import InstrumentationSnapshot, RunRecord
from .models.suggestions import Suggestion
from .models.web_vitals import format_vital_value, round_half_up
from .redaction import redact_url_brief, truncate


def format_duration(ms: float) -> str:
    if ms < 1000:
        return f"{round_half_up(ms)} ms"
    return f"{ms / 1000:.1f} s"


def describe_run(run: RunRecord) -> str:
    """One-line digest, e.g. `CLS 0.012 · LCP 1.23s · 14 req`."""
    summary = run.summary
    parts = [f"CLS {summary.total_cls:.3f}"]
    if summary.lcp is not None:
        parts.append(f"LCP {summary.lcp / 1000:.2f}s")
    if summary.fcp is not None:
        parts.append(f"FCP {summary.fcp / 1000:.2f}s")
    parts.append(f"{summary.network_count} req")
    return " · ".join(parts)


def render_runs(runs: Iterable[RunRecord]) -> str:
    lines = []
    for i, run in enumerate(runs):
        lines.append(f"#{i} {run.session_id} {format_duration(run.duration_ms)}  {describe_run(run)}")
    return "\n".join(lines) if lines else "(no runs)"


def render_snapshot(snapshot: InstrumentationSnapshot, *, max_rows: int = 10) -> str:
    lines: list[str] = ["Web vitals:"]
    metrics = snapshot.web_vitals.metrics_list
    if not metrics:
        lines.append("  (none reported)")
    for m in metrics:
        lines.append(f"  {m.name:<5} {format_vital_value(m.name, m.value):>10}  {m.rating}")

    timeline = snapshot.timeline
    lines.append(f"Timeline: {len(timeline.entries)} entries over {format_duration(timeline.end_time)}")
    for e in timeline.entries[:max_rows]:
        detail = f" ({e.detail})" if e.detail else ""
        lines.append(f"  {e.start_time:>9.1f} ms  {e.entry_type:<12} {truncate(e.name, 50)}{detail}")

    network = snapshot.network
    lines.append(f"Network: {len(network.entries)} requests, done at {format_duration(network.end_time)}")
    slowest = sorted(network.entries, key=lambda e: e.duration, reverse=True)[:max_rows]
    for e in slowest:
        size = f"{e.size} B" if e.size is not None else "-"
        lines.append(f"  {format_duration(e.duration):>9}  {e.type:<10} {size:>10}  {truncate(redact_url_brief(e.url), 80)}")

    shifts = snapshot.layout_shift
    lines.append(f"Layout shifts: {len(shifts.entries)} (total {shifts.total_cls:.3f})")
    for s in shifts.entries[:max_rows]:
        labels = ", ".join(src.node_label for src in s.sources)
        recent = " [input]" if s.had_recent_input else ""
        lines.append(f"  {s.start_time:>9.1f} ms  {s.value:.4f}{recent}  {labels}")
    return "\n".join(lines)


def render_suggestions(suggestions: Iterable[Suggestion]) -> str:
    lines = []
    for s in suggestions:
        lines.append(f"[{s.priority}/{s.severity}] {s.title} ({s.metric})")
        lines.append(f"    {s.description}")
        if s.improvement_hint:
            lines.append(f"    hint: {s.improvement_hint}")
        if s.action:
            lines.append(f"    next: {s.action}")
        if s.doc_url:
            lines.append(f"    docs: {redact_url_brief(s.doc_url)}")
    return "\n".join(lines) if lines else "No suggestions: everything is within thresholds."

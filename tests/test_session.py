from __future__ import annotations

import itertools

import pytest

from vitalscope.errors import ProviderContextError
from vitalscope.models.layout_shift import LayoutShiftEntryStored, LayoutShiftSourceStored, Rect
from vitalscope.models.snapshot import LayoutShiftSection, NetworkSection, SnapshotUpdate, empty_snapshot
from vitalscope.models.web_vitals import VitalReport, WebVitalMetric
from vitalscope.session import InstrumentationSession, SessionState, provide, use_instrumentation


class _Clock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _session(**kwargs) -> tuple[InstrumentationSession, _Clock]:
    clock = _Clock(1000.0)
    ids = (f"s{i}" for i in itertools.count(1))
    wall = itertools.count(1_700_000_000_000, 1000)
    session = InstrumentationSession(
        clock=clock,
        wall_clock=lambda: next(wall),
        id_factory=lambda: next(ids),
        **kwargs,
    )
    return session, clock


def _shift_section(value: float) -> LayoutShiftSection:
    entry = LayoutShiftEntryStored(
        id="cls-1-10",
        value=value,
        had_recent_input=False,
        start_time=10.0,
        sources=(LayoutShiftSourceStored(node_label="div", previous_rect=Rect(), current_rect=Rect()),),
    )
    return LayoutShiftSection(entries=(entry,), total_cls=value)


def test_initial_state_is_idle() -> None:
    session, _ = _session()
    assert session.state is SessionState.IDLE
    assert session.is_recording is False
    assert session.session_id is None
    assert session.session_start_time is None
    assert session.snapshot == empty_snapshot()
    assert session.runs_history == ()


def test_start_captures_anchor_and_id() -> None:
    session, clock = _session()
    clock.now = 4321.5
    assert session.start() is True
    assert session.state is SessionState.RECORDING
    assert session.session_id == "s1"
    assert session.session_start_time == 4321.5
    assert session.session_started_at == 1_700_000_000_000
    assert session.session_stopped_at is None


def test_repeated_start_is_a_noop() -> None:
    session, clock = _session()
    session.start()
    clock.now = 9999.0
    assert session.start() is False
    assert session.session_id == "s1"
    assert session.session_start_time == 1000.0


def test_stop_outside_recording_is_a_noop() -> None:
    session, _ = _session()
    assert session.stop() is None
    assert session.state is SessionState.IDLE
    assert session.runs_history == ()


def test_stop_records_run_summary() -> None:
    session, _ = _session()
    session.start()
    metric = WebVitalMetric.from_report("LCP", VitalReport(name="LCP", value=1800.0, id="v1"))
    session.update_snapshot(
        SnapshotUpdate(web_vitals={"metrics_list": [metric]}, layout_shift=_shift_section(0.12))
    )

    run = session.stop()
    assert run is not None
    assert session.state is SessionState.STOPPED
    assert run.session_id == "s1"
    assert run.duration_ms == 1000
    assert run.summary.lcp == 1800.0
    assert run.summary.fcp is None
    assert run.summary.total_cls == 0.12
    assert session.runs_history == (run,)


def test_stop_then_start_gives_fresh_session_and_keeps_history() -> None:
    session, _ = _session()
    session.start()
    session.update_snapshot(SnapshotUpdate(layout_shift=_shift_section(0.3)))
    first = session.stop()

    session.start()
    assert session.session_id == "s2"
    assert session.snapshot == empty_snapshot()
    assert session.session_stopped_at is None
    assert session.runs_history[0] is first


def test_history_is_newest_first_and_capped() -> None:
    session, _ = _session(max_runs_history=3)
    for _ in range(5):
        session.start()
        session.stop()
    assert [r.session_id for r in session.runs_history] == ["s5", "s4", "s3"]


def test_reset_is_idempotent_from_any_state() -> None:
    session, _ = _session()
    session.start()
    session.update_snapshot(SnapshotUpdate(layout_shift=_shift_section(0.3)))
    session.stop()

    session.reset()
    once = (session.state, session.snapshot, session.session_id, session.session_start_time)
    session.reset()
    twice = (session.state, session.snapshot, session.session_id, session.session_start_time)

    assert once == twice == (SessionState.IDLE, empty_snapshot(), None, None)
    assert session.session_started_at is None
    assert session.session_stopped_at is None
    assert len(session.runs_history) == 1


def test_clear_history_keeps_snapshot() -> None:
    session, _ = _session()
    session.start()
    session.update_snapshot(SnapshotUpdate(layout_shift=_shift_section(0.05)))
    session.stop()
    kept = session.snapshot

    session.clear_history()
    assert session.runs_history == ()
    assert session.snapshot is kept


def test_update_snapshot_merges_only_given_sections() -> None:
    session, _ = _session()
    session.update_snapshot(SnapshotUpdate(layout_shift=_shift_section(0.2)))
    session.update_snapshot(SnapshotUpdate(network=NetworkSection(entries=(), end_time=42.0)))

    snap = session.snapshot
    assert snap.layout_shift.total_cls == 0.2
    assert snap.network.end_time == 42.0

    session.update_snapshot(SnapshotUpdate(layout_shift={"total_cls": 0.5}))
    assert session.snapshot.layout_shift.total_cls == 0.5
    assert len(session.snapshot.layout_shift.entries) == 1


def test_update_snapshot_rejects_unknown_fields() -> None:
    session, _ = _session()
    with pytest.raises(TypeError):
        session.update_snapshot(SnapshotUpdate(network={"bogus": 1}))


def test_listeners_see_lifecycle_events() -> None:
    session, _ = _session()
    events: list[str] = []
    unsubscribe = session.subscribe(lambda event, _s: events.append(event))

    session.start()
    session.update_snapshot(SnapshotUpdate())
    session.stop()
    session.clear_history()
    session.reset()
    unsubscribe()
    session.start()

    assert events == ["started", "snapshot", "stopped", "history_cleared", "reset"]


def test_use_instrumentation_outside_provider_fails_loudly() -> None:
    with pytest.raises(ProviderContextError):
        use_instrumentation()


def test_provider_nesting_returns_innermost_session() -> None:
    outer, _ = _session()
    inner, _ = _session()
    with provide(outer):
        assert use_instrumentation() is outer
        with provide(inner):
            assert use_instrumentation() is inner
        assert use_instrumentation() is outer
    with pytest.raises(ProviderContextError):
        use_instrumentation()

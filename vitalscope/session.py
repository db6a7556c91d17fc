"""Recording session state machine.

    idle --start()--> recording --stop()--> stopped --reset()--> idle

`reset()` is accepted from any state. Repeated `start()` while recording and
`stop()` outside recording are no-ops. The session keeps the latest snapshot
(replaced wholesale on every merge) and a newest-first history of finished runs.
"""

from __future__ import annotations

import contextvars
import enum
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from .errors import ProviderContextError
from .models.snapshot import (
    InstrumentationSnapshot,
    RunRecord,
    SnapshotUpdate,
    empty_snapshot,
    generate_session_id,
    merge_snapshot,
    run_summary,
)

_LOGGER = logging.getLogger("vitalscope.session")

MAX_RUNS_HISTORY = 50

SessionListener = Callable[[str, "InstrumentationSession"], None]


class SessionState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _perf_clock_ms() -> float:
    return time.perf_counter() * 1000.0


class InstrumentationSession:
    def __init__(
        self,
        *,
        clock: Callable[[], float] | None = None,
        wall_clock: Callable[[], int] | None = None,
        max_runs_history: int = MAX_RUNS_HISTORY,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        # `clock` must share a time base with the platform's entry start times.
        self._clock = clock or _perf_clock_ms
        self._wall_clock = wall_clock or _wall_clock_ms
        self._id_factory = id_factory
        self.max_runs_history = max(1, int(max_runs_history))

        self._state = SessionState.IDLE
        self._snapshot = empty_snapshot()
        self._session_id: str | None = None
        self._session_start_time: float | None = None
        self._started_at: int | None = None
        self._stopped_at: int | None = None
        self._runs: list[RunRecord] = []
        self._listeners: list[SessionListener] = []

    # ──────────────────────────────────────────────────────────────────
    # Read side
    # ──────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is SessionState.RECORDING

    @property
    def snapshot(self) -> InstrumentationSnapshot:
        return self._snapshot

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def session_start_time(self) -> float | None:
        """High-resolution anchor captured at start (page clock, ms)."""
        return self._session_start_time

    @property
    def session_started_at(self) -> int | None:
        return self._started_at

    @property
    def session_stopped_at(self) -> int | None:
        return self._stopped_at

    @property
    def runs_history(self) -> tuple[RunRecord, ...]:
        return tuple(self._runs)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    # ──────────────────────────────────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────────────────────────────────

    def start(self) -> bool:
        if self._state is SessionState.RECORDING:
            return False
        self._session_id = self._id_factory()
        self._started_at = self._wall_clock()
        self._stopped_at = None
        self._snapshot = empty_snapshot()
        self._session_start_time = self._clock()
        self._state = SessionState.RECORDING
        _LOGGER.info("recording started session=%s anchor=%.1f", self._session_id, self._session_start_time)
        self._notify("started")
        return True

    def stop(self) -> RunRecord | None:
        if self._state is not SessionState.RECORDING:
            return None
        self._stopped_at = self._wall_clock()
        self._state = SessionState.STOPPED
        run = RunRecord(
            session_id=self._session_id or "",
            started_at=self._started_at if self._started_at is not None else self._stopped_at,
            stopped_at=self._stopped_at,
            summary=run_summary(self._snapshot),
        )
        self._runs.insert(0, run)
        del self._runs[self.max_runs_history :]
        _LOGGER.info("recording stopped session=%s duration_ms=%d", run.session_id, run.duration_ms)
        self._notify("stopped")
        return run

    def reset(self) -> None:
        self._snapshot = empty_snapshot()
        self._session_id = None
        self._session_start_time = None
        self._started_at = None
        self._stopped_at = None
        self._state = SessionState.IDLE
        self._notify("reset")

    def clear_history(self) -> None:
        self._runs.clear()
        self._notify("history_cleared")

    def update_snapshot(self, update: SnapshotUpdate) -> InstrumentationSnapshot:
        self._snapshot = merge_snapshot(self._snapshot, update)
        self._notify("snapshot")
        return self._snapshot


# ──────────────────────────────────────────────────────────────────────────
# Provider context
# ──────────────────────────────────────────────────────────────────────────

_PROVIDED: contextvars.ContextVar[tuple[InstrumentationSession, ...]] = contextvars.ContextVar(
    "vitalscope_sessions", default=()
)


@contextmanager
def provide(session: InstrumentationSession) -> Iterator[InstrumentationSession]:
    """Make `session` the current one for `use_instrumentation()` inside the block."""
    token = _PROVIDED.set(_PROVIDED.get() + (session,))
    try:
        yield session
    finally:
        _PROVIDED.reset(token)


def use_instrumentation() -> InstrumentationSession:
    stack = _PROVIDED.get()
    if not stack:
        raise ProviderContextError("use_instrumentation() called outside of an instrumentation provider")
    return stack[-1]

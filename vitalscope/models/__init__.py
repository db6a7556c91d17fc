"""Data model for instrumentation snapshots.

Submodules:
- web_vitals.py: vital metrics, thresholds and ratings
- timeline.py: normalized timeline entries + model
- network.py: resource timing entries
- layout_shift.py: stored layout-shift entries and rects
- snapshot.py: session snapshot, partial updates, run records
- suggestions.py: rule-engine output
"""

from __future__ import annotations

from .layout_shift import LayoutShiftEntryStored, LayoutShiftSourceStored, Rect
from .network import NetworkResourceEntry, NetworkTiming, network_end_time
from .snapshot import (
    InstrumentationSnapshot,
    LayoutShiftSection,
    NetworkSection,
    RunRecord,
    RunSummary,
    SnapshotUpdate,
    WebVitalsSection,
    empty_snapshot,
    generate_session_id,
    merge_snapshot,
    run_summary,
    snapshot_from_dict,
)
from .suggestions import PRIORITY_ORDER, SEVERITY_ORDER, Suggestion
from .timeline import TIMELINE_ENTRY_TYPES, TimelineEntry, TimelineModel
from .web_vitals import (
    WEB_VITALS_ORDER,
    WEB_VITALS_THRESHOLDS,
    VitalReport,
    WebVitalMetric,
    WebVitalsSnapshot,
    get_rating,
)

__all__ = [
    "InstrumentationSnapshot",
    "LayoutShiftEntryStored",
    "LayoutShiftSection",
    "LayoutShiftSourceStored",
    "NetworkResourceEntry",
    "NetworkSection",
    "NetworkTiming",
    "PRIORITY_ORDER",
    "Rect",
    "RunRecord",
    "RunSummary",
    "SEVERITY_ORDER",
    "SnapshotUpdate",
    "Suggestion",
    "TIMELINE_ENTRY_TYPES",
    "TimelineEntry",
    "TimelineModel",
    "VitalReport",
    "WEB_VITALS_ORDER",
    "WEB_VITALS_THRESHOLDS",
    "WebVitalMetric",
    "WebVitalsSection",
    "WebVitalsSnapshot",
    "empty_snapshot",
    "generate_session_id",
    "get_rating",
    "merge_snapshot",
    "network_end_time",
    "run_summary",
    "snapshot_from_dict",
]

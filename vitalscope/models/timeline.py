from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

TimelineEntryType = Literal["paint", "resource", "navigation", "layout-shift"]

TIMELINE_ENTRY_TYPES: tuple[TimelineEntryType, ...] = ("paint", "resource", "navigation", "layout-shift")

# Zero-duration layout shifts still need a visible bar.
LAYOUT_SHIFT_MIN_DURATION = 2.0


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    id: str
    name: str
    start_time: float
    duration: float
    entry_type: TimelineEntryType
    detail: str | None = None
    value: float | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "startTime": self.start_time,
            "duration": self.duration,
            "entryType": self.entry_type,
        }
        if self.detail is not None:
            out["detail"] = self.detail
        if self.value is not None:
            out["value"] = self.value
        return out


@dataclass(frozen=True, slots=True)
class TimelineModel:
    entries: tuple[TimelineEntry, ...] = ()
    time_origin: float = 0.0
    end_time: float = 0.0

    @classmethod
    def build(cls, entries: list[TimelineEntry], *, time_origin: float) -> TimelineModel:
        ordered = sorted(entries, key=lambda e: e.start_time)
        end_time = max((e.end_time for e in ordered), default=0.0)
        return cls(entries=tuple(ordered), time_origin=time_origin, end_time=end_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "timeOrigin": self.time_origin,
            "endTime": self.end_time,
        }

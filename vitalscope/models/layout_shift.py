"""Layout-shift (CLS) entries with serialized attribution sources.

Rects are kept in viewport coordinates as captured; converting them to a
container-relative space is left to whoever renders them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_any(cls, raw: Any) -> Rect:
        if isinstance(raw, Rect):
            return raw
        if not isinstance(raw, dict):
            return cls()

        def num(key: str) -> float:
            v = raw.get(key)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return 0.0
            return float(v)

        return cls(x=num("x"), y=num("y"), width=num("width"), height=num("height"))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class LayoutShiftSourceStored:
    node_label: str
    previous_rect: Rect
    current_rect: Rect

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeLabel": self.node_label,
            "previousRect": self.previous_rect.to_dict(),
            "currentRect": self.current_rect.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class LayoutShiftEntryStored:
    id: str
    value: float
    had_recent_input: bool
    start_time: float
    sources: tuple[LayoutShiftSourceStored, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value,
            "hadRecentInput": self.had_recent_input,
            "startTime": self.start_time,
            "sources": [s.to_dict() for s in self.sources],
        }

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class NetworkTiming:
    """Per-phase breakdown in ms; a phase is None when a mark was missing."""

    dns: float | None = None
    connect: float | None = None
    request: float | None = None
    response: float | None = None

    def is_empty(self) -> bool:
        return self.dns is None and self.connect is None and self.request is None and self.response is None

    def to_dict(self) -> dict[str, Any]:
        return {
            k: v
            for k, v in (
                ("dns", self.dns),
                ("connect", self.connect),
                ("request", self.request),
                ("response", self.response),
            )
            if v is not None
        }


@dataclass(frozen=True, slots=True)
class NetworkResourceEntry:
    id: str
    url: str
    name: str
    start_time: float
    duration: float
    size: int | None
    type: str
    timing: NetworkTiming | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "startTime": self.start_time,
            "duration": self.duration,
            "size": self.size,
            "type": self.type,
        }
        if self.timing is not None:
            out["timing"] = self.timing.to_dict()
        return out


def network_end_time(entries: tuple[NetworkResourceEntry, ...] | list[NetworkResourceEntry]) -> float:
    return max((e.end_time for e in entries), default=0.0)

"""Web Vitals data model and rating thresholds (Core Web Vitals guidance)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal

WebVitalName = Literal["LCP", "FCP", "CLS", "INP", "TTFB"]
VitalRating = Literal["good", "needs-improvement", "poor"]

WEB_VITALS_ORDER: tuple[WebVitalName, ...] = ("LCP", "FCP", "CLS", "INP", "TTFB")

# (good, poor) in ms for time-based metrics, unitless for CLS.
WEB_VITALS_THRESHOLDS: dict[str, tuple[float, float]] = {
    "LCP": (2500, 4000),
    "FCP": (1800, 3000),
    "CLS": (0.1, 0.25),
    "INP": (200, 500),
    "TTFB": (800, 1800),
}

WEB_VITALS_UNITS: dict[str, str] = {
    "LCP": "ms",
    "FCP": "ms",
    "CLS": "",
    "INP": "ms",
    "TTFB": "ms",
}


def to_vital_name(name: Any) -> WebVitalName | None:
    if isinstance(name, str) and name in WEB_VITALS_THRESHOLDS:
        return name  # type: ignore[return-value]
    return None


def get_rating(name: str, value: float) -> VitalRating:
    good, poor = WEB_VITALS_THRESHOLDS[name]
    if value <= good:
        return "good"
    if value <= poor:
        return "needs-improvement"
    return "poor"


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def format_vital_value(name: str, value: float) -> str:
    if name == "CLS":
        return f"{value:.3f}"
    unit = WEB_VITALS_UNITS.get(name, "")
    if unit == "ms":
        return f"{round_half_up(value)} ms"
    return f"{value}{unit}"


@dataclass(frozen=True, slots=True)
class VitalReport:
    """One report as delivered by the platform vitals feed."""

    name: str
    value: float
    id: str = ""
    delta: float = 0.0
    navigation_type: str = "navigate"


@dataclass(frozen=True, slots=True)
class WebVitalMetric:
    name: WebVitalName
    value: float
    rating: VitalRating
    delta: float
    id: str
    navigation_type: str

    @classmethod
    def from_report(cls, name: WebVitalName, report: VitalReport) -> WebVitalMetric:
        return cls(
            name=name,
            value=float(report.value),
            rating=get_rating(name, float(report.value)),
            delta=float(report.delta),
            id=str(report.id),
            navigation_type=str(report.navigation_type),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "rating": self.rating,
            "delta": self.delta,
            "id": self.id,
            "navigationType": self.navigation_type,
        }


@dataclass(frozen=True, slots=True)
class WebVitalsSnapshot:
    """History point: latest value per vital at `timestamp` (wall-clock ms)."""

    timestamp: int
    LCP: float | None = None
    FCP: float | None = None
    CLS: float | None = None
    INP: float | None = None
    TTFB: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "LCP": self.LCP,
            "FCP": self.FCP,
            "CLS": self.CLS,
            "INP": self.INP,
            "TTFB": self.TTFB,
            "timestamp": self.timestamp,
        }

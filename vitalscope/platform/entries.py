"""Raw performance entries as delivered by the platform.

One frozen dataclass per entry kind (a tagged union); `parse_entry` builds them
from the camelCase JSON emitted by the in-page observer. Anything the pipeline
does not model becomes `OtherEntry` so collectors can filter it out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from ..models.layout_shift import Rect
from .boundary import NodeRef


@dataclass(frozen=True, slots=True)
class PaintTiming:
    entry_type: ClassVar[str] = "paint"

    name: str
    start_time: float
    duration: float = 0.0


@dataclass(frozen=True, slots=True)
class ResourceTiming:
    entry_type: ClassVar[str] = "resource"

    name: str
    start_time: float
    duration: float = 0.0
    initiator_type: str = ""
    transfer_size: float | None = None
    encoded_body_size: float | None = None
    domain_lookup_start: float | None = None
    domain_lookup_end: float | None = None
    connect_start: float | None = None
    connect_end: float | None = None
    request_start: float | None = None
    response_start: float | None = None
    response_end: float | None = None


@dataclass(frozen=True, slots=True)
class NavigationTiming:
    entry_type: ClassVar[str] = "navigation"

    name: str
    start_time: float
    duration: float = 0.0
    navigation_type: str | None = None


@dataclass(frozen=True, slots=True)
class LayoutShiftAttribution:
    node: NodeRef | None
    previous_rect: Rect
    current_rect: Rect


@dataclass(frozen=True, slots=True)
class LayoutShift:
    entry_type: ClassVar[str] = "layout-shift"

    start_time: float
    value: float
    duration: float = 0.0
    had_recent_input: bool = False
    sources: tuple[LayoutShiftAttribution, ...] = ()
    name: str = ""


@dataclass(frozen=True, slots=True)
class OtherEntry:
    entry_type: str
    name: str
    start_time: float
    duration: float = 0.0


RawEntry = Union[PaintTiming, ResourceTiming, NavigationTiming, LayoutShift, OtherEntry]


def _num(raw: Any, default: float = 0.0) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    return float(raw)


def _opt_num(raw: Any) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return float(raw)


def _str(raw: Any, default: str = "") -> str:
    return raw if isinstance(raw, str) else default


def parse_entry(payload: Any) -> RawEntry | None:
    """Build a raw entry from observer JSON; None when the payload is unusable."""
    if not isinstance(payload, dict):
        return None
    entry_type = payload.get("entryType")
    start = _opt_num(payload.get("startTime"))
    if not isinstance(entry_type, str) or not entry_type or start is None:
        return None
    name = _str(payload.get("name"))
    duration = _num(payload.get("duration"))

    if entry_type == "paint":
        return PaintTiming(name=name, start_time=start, duration=duration)

    if entry_type == "resource":
        return ResourceTiming(
            name=name,
            start_time=start,
            duration=duration,
            initiator_type=_str(payload.get("initiatorType")),
            transfer_size=_opt_num(payload.get("transferSize")),
            encoded_body_size=_opt_num(payload.get("encodedBodySize")),
            domain_lookup_start=_opt_num(payload.get("domainLookupStart")),
            domain_lookup_end=_opt_num(payload.get("domainLookupEnd")),
            connect_start=_opt_num(payload.get("connectStart")),
            connect_end=_opt_num(payload.get("connectEnd")),
            request_start=_opt_num(payload.get("requestStart")),
            response_start=_opt_num(payload.get("responseStart")),
            response_end=_opt_num(payload.get("responseEnd")),
        )

    if entry_type == "navigation":
        nav_type = payload.get("type")
        return NavigationTiming(
            name=name,
            start_time=start,
            duration=duration,
            navigation_type=nav_type if isinstance(nav_type, str) and nav_type else None,
        )

    if entry_type == "layout-shift":
        sources: list[LayoutShiftAttribution] = []
        raw_sources = payload.get("sources")
        if isinstance(raw_sources, list):
            for src in raw_sources:
                if not isinstance(src, dict):
                    continue
                sources.append(
                    LayoutShiftAttribution(
                        node=NodeRef.from_any(src.get("node")),
                        previous_rect=Rect.from_any(src.get("previousRect")),
                        current_rect=Rect.from_any(src.get("currentRect")),
                    )
                )
        return LayoutShift(
            start_time=start,
            value=_num(payload.get("value")),
            duration=duration,
            had_recent_input=payload.get("hadRecentInput") is True,
            sources=tuple(sources),
            name=name,
        )

    return OtherEntry(entry_type=entry_type, name=name, start_time=start, duration=duration)

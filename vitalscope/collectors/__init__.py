"""Per-source collectors feeding the snapshot aggregator."""

from __future__ import annotations

from .base import Collector
from .layout_shift import LayoutShiftCollector
from .network import NetworkCollector
from .timeline import TimelineCollector
from .web_vitals import OwnershipToken, VitalForwarder, WebVitalsCollector, vital_forwarder

__all__ = [
    "Collector",
    "LayoutShiftCollector",
    "NetworkCollector",
    "OwnershipToken",
    "TimelineCollector",
    "VitalForwarder",
    "WebVitalsCollector",
    "vital_forwarder",
]

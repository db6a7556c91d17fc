"""Resource timing capture for the network waterfall."""

from __future__ import annotations

import logging
from urllib.parse import SplitResult, urlsplit

from ..models.network import NetworkResourceEntry, NetworkTiming, network_end_time
from ..models.snapshot import NetworkSection
from ..platform.entries import RawEntry, ResourceTiming
from ..platform.feed import PlatformFeed
from .base import Collector

_LOGGER = logging.getLogger("vitalscope.collectors.network")

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}


def _parse_absolute_url(url: str) -> SplitResult | None:
    """Parse an absolute URL; None for relative or malformed input."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme:
        return None
    if parts.scheme.lower() in _DEFAULT_PORTS and not parts.hostname:
        return None
    return parts


def url_pathname(url: str) -> str | None:
    parts = _parse_absolute_url(url)
    if parts is None:
        return None
    return parts.path or "/"


def url_origin(url: str) -> str | None:
    """`scheme://host[:port]` with default ports elided; None when opaque/malformed."""
    parts = _parse_absolute_url(url)
    if parts is None:
        return None
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        return None
    try:
        port = parts.port
    except ValueError:
        return None
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def resource_name(url: str) -> str:
    """Short display name: last path segment, else host, else a URL prefix."""
    parts = _parse_absolute_url(url)
    if parts is None:
        return str(url)[:60]
    segments = [s for s in (parts.path or "/").split("/") if s]
    if segments:
        return segments[-1]
    return parts.hostname or url[:40]


def resource_id(entry: ResourceTiming) -> str:
    return f"{entry.name}-{entry.start_time:.2f}"


def _span(start: float | None, end: float | None) -> float | None:
    if start is None or end is None:
        return None
    return end - start


def normalize_resource(entry: ResourceTiming) -> NetworkResourceEntry:
    size: int | None = None
    for candidate in (entry.transfer_size, entry.encoded_body_size):
        if candidate is not None and candidate > 0:
            size = int(candidate)
            break

    timing = NetworkTiming(
        dns=_span(entry.domain_lookup_start, entry.domain_lookup_end),
        connect=_span(entry.connect_start, entry.connect_end),
        request=_span(entry.request_start, entry.response_start),
        response=_span(entry.response_start, entry.response_end),
    )

    return NetworkResourceEntry(
        id=resource_id(entry),
        url=entry.name,
        name=resource_name(entry.name),
        start_time=entry.start_time,
        duration=entry.duration,
        size=size,
        type=entry.initiator_type or "other",
        timing=None if timing.is_empty() else timing,
    )


class NetworkCollector(Collector):
    """Every resource entry seen since mount (or the last `clear()`).

    Unlike the timeline, there is no retention cap here.
    """

    name = "network"

    def __init__(self, feed: PlatformFeed) -> None:
        super().__init__(feed)
        self._seen: set[str] = set()
        self.entries: list[NetworkResourceEntry] = []

    @property
    def end_time(self) -> float:
        return network_end_time(self.entries)

    def section(self) -> NetworkSection:
        return NetworkSection(entries=tuple(self.entries), end_time=self.end_time)

    def _on_mount(self) -> None:
        initial = [e for e in self.feed.entries_by_type("resource") if isinstance(e, ResourceTiming)]
        if initial:
            self.ingest(initial)
        self._observe("resource", self.ingest)

    def ingest(self, batch: list[RawEntry]) -> bool:
        added = False
        for entry in batch:
            if not isinstance(entry, ResourceTiming):
                continue
            key = resource_id(entry)
            if key in self._seen:
                continue
            self._seen.add(key)
            self.entries.append(normalize_resource(entry))
            added = True
        if not added:
            return False
        self.entries.sort(key=lambda e: e.start_time)
        _LOGGER.debug("network entries=%d", len(self.entries))
        self._emit()
        return True

    def clear(self) -> None:
        self._seen.clear()
        self.entries = []
        self._emit()

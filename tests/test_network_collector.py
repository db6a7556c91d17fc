from __future__ import annotations

from vitalscope.collectors.network import (
    NetworkCollector,
    normalize_resource,
    resource_name,
    url_origin,
    url_pathname,
)
from vitalscope.platform.entries import ResourceTiming
from vitalscope.platform.feed import PlatformFeed


def _res(url: str, start: float, duration: float = 10.0, **kwargs) -> ResourceTiming:
    return ResourceTiming(name=url, start_time=start, duration=duration, **kwargs)


def test_url_pathname_and_origin() -> None:
    assert url_pathname("https://example.com") == "/"
    assert url_pathname("https://example.com/a/b?x=1#frag") == "/a/b"
    assert url_pathname("/relative/path") is None
    assert url_pathname("http://[::1") is None

    assert url_origin("https://example.com:443/x") == "https://example.com"
    assert url_origin("http://localhost:5173/app.js") == "http://localhost:5173"
    assert url_origin("data:text/plain,hi") is None
    assert url_origin("garbage") is None


def test_resource_name_prefers_last_segment_then_host() -> None:
    assert resource_name("https://example.com/assets/img/logo.png?v=2") == "logo.png"
    assert resource_name("https://example.com/api/items/") == "items"
    assert resource_name("https://example.com/") == "example.com"
    malformed = "::not a url::" + "z" * 80
    assert resource_name(malformed) == malformed[:60]


def test_normalize_resource_size_and_timing_breakdown() -> None:
    entry = normalize_resource(
        _res(
            "https://example.com/api/data.json",
            100.0,
            50.0,
            initiator_type="fetch",
            transfer_size=0,
            encoded_body_size=2048,
            domain_lookup_start=100.0,
            domain_lookup_end=105.0,
            request_start=110.0,
            response_start=130.0,
            response_end=150.0,
        )
    )
    assert entry.id == "https://example.com/api/data.json-100.00"
    assert entry.name == "data.json"
    assert entry.type == "fetch"
    # transfer size 0 (cache hit) falls back to the encoded body size
    assert entry.size == 2048
    assert entry.timing is not None
    assert entry.timing.to_dict() == {"dns": 5.0, "request": 20.0, "response": 20.0}
    assert entry.timing.connect is None


def test_normalize_resource_without_marks_or_sizes() -> None:
    entry = normalize_resource(_res("https://example.com/x.css", 5.0))
    assert entry.size is None
    assert entry.timing is None
    assert entry.type == "other"
    assert "timing" not in entry.to_dict()


def test_mount_reads_existing_entries_without_duplicates() -> None:
    feed = PlatformFeed(clock=lambda: 0.0)
    feed.dispatch([_res("https://example.com/b.js", 20.0), _res("https://example.com/a.js", 10.0)])

    collector = NetworkCollector(feed)
    collector.mount()
    assert [e.name for e in collector.entries] == ["a.js", "b.js"]

    feed.dispatch([_res("https://example.com/a.js", 10.0), _res("https://example.com/early.js", 1.0, 5.0)])
    assert [e.name for e in collector.entries] == ["early.js", "a.js", "b.js"]
    assert collector.end_time == 30.0


def test_same_url_at_different_times_is_kept_twice() -> None:
    feed = PlatformFeed(clock=lambda: 0.0)
    collector = NetworkCollector(feed)
    collector.mount()
    feed.dispatch([_res("https://example.com/poll", 10.0), _res("https://example.com/poll", 510.0)])
    assert len(collector.entries) == 2


def test_no_count_cap() -> None:
    feed = PlatformFeed(clock=lambda: 0.0)
    collector = NetworkCollector(feed)
    collector.mount()
    feed.dispatch([_res(f"https://example.com/{i}.png", float(i)) for i in range(300)])
    assert len(collector.entries) == 300


def test_clear_resets_seen_keys() -> None:
    feed = PlatformFeed(clock=lambda: 0.0)
    collector = NetworkCollector(feed)
    collector.mount()
    entry = _res("https://example.com/a.js", 10.0)
    feed.dispatch([entry])
    collector.clear()
    assert collector.entries == []
    assert collector.end_time == 0.0

    collector.ingest([entry])
    assert len(collector.entries) == 1

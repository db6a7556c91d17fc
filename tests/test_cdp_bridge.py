from __future__ import annotations

import json
from typing import Any

from vitalscope.cdp.bridge import CdpPlatformBridge
from vitalscope.cdp.observer_script import BINDING_NAME, observer_script
from vitalscope.models.layout_shift import Rect
from vitalscope.models.web_vitals import VitalReport
from vitalscope.platform.boundary import ElementBoundary
from vitalscope.platform.entries import LayoutShift, ResourceTiming
from vitalscope.platform.feed import PlatformFeed


class FakeConnection:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any] | None]] = []
        self.events: list[dict[str, Any]] = []
        self.drained = 0

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.sent.append((method, params))
        if method == "Page.addScriptToEvaluateOnNewDocument":
            return {"identifier": "7"}
        if method == "Runtime.evaluate":
            return {"result": {"type": "object", "value": {"ok": True}}}
        return {}

    def drain_events(self, *, max_messages: int = 50) -> int:
        self.drained += 1
        return 0

    def pop_events(self, method: str | None = None) -> list[dict[str, Any]]:
        out = [e for e in self.events if method is None or e.get("method") == method]
        self.events = [e for e in self.events if e not in out]
        return out

    def emit(self, payload: Any, *, name: str = BINDING_NAME) -> None:
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        self.events.append({"method": "Runtime.bindingCalled", "params": {"name": name, "payload": raw}})


def _bridge(boundary: ElementBoundary | None = None) -> tuple[FakeConnection, PlatformFeed, CdpPlatformBridge]:
    conn = FakeConnection()
    feed = PlatformFeed(clock=lambda: 1000.0)
    return conn, feed, CdpPlatformBridge(conn, feed, boundary=boundary)


def test_install_adds_binding_and_injects_observer() -> None:
    conn, _, bridge = _bridge(ElementBoundary(selector="#app"))
    bridge.install()

    methods = [m for m, _ in conn.sent]
    assert methods == [
        "Runtime.enable",
        "Page.enable",
        "Runtime.addBinding",
        "Page.addScriptToEvaluateOnNewDocument",
        "Runtime.evaluate",
    ]
    assert conn.sent[2][1] == {"name": BINDING_NAME}
    source = conn.sent[3][1]["source"]  # type: ignore[index]
    assert BINDING_NAME in source
    assert '"#app"' in source
    assert conn.sent[4][1]["expression"] == source  # type: ignore[index]


def test_observer_script_without_boundary_uses_null_selector() -> None:
    source = observer_script()
    assert "const BOUNDARY_SELECTOR = null;" in source
    assert "__BINDING__" not in source


def test_hello_configures_feed_and_syncs_clock() -> None:
    conn, feed, bridge = _bridge()
    conn.emit(
        {
            "kind": "hello",
            "version": "1",
            "origin": "https://app.example.com",
            "timeOrigin": 1_700_000_000_000.5,
            "now": 250.0,
            "supportedEntryTypes": ["paint", "resource", "navigation"],
        }
    )
    assert bridge.pump() == 1
    assert bridge.hello_received is True
    assert feed.origin == "https://app.example.com"
    assert feed.time_origin == 1_700_000_000_000.5
    assert feed.supports("layout-shift") is False
    assert feed.now() == 250.0
    assert bridge.page_version == "1"


def test_uninstall_stops_observer_and_removes_injection() -> None:
    conn, _, bridge = _bridge()
    bridge.install()
    conn.sent.clear()

    bridge.uninstall()
    methods = [m for m, _ in conn.sent]
    assert methods == ["Page.removeScriptToEvaluateOnNewDocument", "Runtime.evaluate", "Runtime.removeBinding"]
    assert conn.sent[0][1] == {"identifier": "7"}
    assert "disconnect()" in conn.sent[1][1]["expression"]  # type: ignore[index]

    conn.sent.clear()
    bridge.uninstall()
    assert [m for m, _ in conn.sent] == ["Runtime.evaluate", "Runtime.removeBinding"]


def test_entries_are_parsed_and_dispatched() -> None:
    conn, feed, bridge = _bridge()
    conn.emit(
        {
            "kind": "entries",
            "now": 500.0,
            "entries": [
                {
                    "entryType": "resource",
                    "name": "https://app.example.com/a.js",
                    "startTime": 12.5,
                    "duration": 30.0,
                    "initiatorType": "script",
                    "transferSize": 1200,
                },
                {"entryType": "resource", "name": "missing start"},
                {
                    "entryType": "layout-shift",
                    "startTime": 40.0,
                    "value": 0.12,
                    "hadRecentInput": False,
                    "sources": [
                        {
                            "node": {"tag": "div", "id": "hero", "className": "", "path": ["HTML:1", "BODY:2"]},
                            "previousRect": {"x": 0, "y": 0, "width": 10, "height": 10},
                            "currentRect": {"x": 0, "y": 30, "width": 10, "height": 10},
                        }
                    ],
                },
            ],
        }
    )
    bridge.pump()

    (resource,) = feed.entries_by_type("resource")
    assert isinstance(resource, ResourceTiming)
    assert (resource.start_time, resource.initiator_type, resource.transfer_size) == (12.5, "script", 1200)

    (shift,) = feed.entries_by_type("layout-shift")
    assert isinstance(shift, LayoutShift)
    assert shift.sources[0].node is not None
    assert shift.sources[0].node.path == ("HTML:1", "BODY:2")
    assert shift.sources[0].current_rect == Rect(0, 30, 10, 10)
    assert feed.now() == 500.0


def test_vital_reports_reach_feed_subscribers() -> None:
    conn, feed, bridge = _bridge()
    seen: list[VitalReport] = []
    feed.on_vital("CLS", seen.append)
    conn.emit({"kind": "vital", "name": "CLS", "value": 0.08, "delta": 0.02, "id": "v1-1", "navigationType": "reload"})
    conn.emit({"kind": "vital", "name": "FID", "value": 10})
    bridge.pump()
    assert seen == [VitalReport(name="CLS", value=0.08, id="v1-1", delta=0.02, navigation_type="reload")]


def test_boundary_messages_update_element_boundary() -> None:
    boundary = ElementBoundary(selector="#app")
    conn, _, bridge = _bridge(boundary)
    conn.emit({"kind": "boundary", "path": ["HTML:1", "BODY:2"], "rect": {"x": 0, "y": 0, "width": 800, "height": 600}})
    bridge.pump()
    assert boundary.present is True
    assert boundary.bounding_rect() == Rect(0, 0, 800, 600)

    conn.emit({"kind": "boundary", "path": None, "rect": None})
    bridge.pump()
    assert boundary.present is False


def test_malformed_and_foreign_payloads_are_dropped() -> None:
    conn, feed, bridge = _bridge()
    conn.emit("{not json")
    conn.emit([1, 2, 3])
    conn.emit({"kind": "mystery"})
    conn.emit({"kind": "entries", "entries": "nope"})
    conn.emit({"kind": "hello", "origin": "https://evil.example"}, name="someOtherBinding")
    assert bridge.pump() == 0
    assert bridge.hello_received is False
    assert feed.origin == ""

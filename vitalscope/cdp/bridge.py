"""Feed a `PlatformFeed` from a live page over CDP.

The in-page observer (see `observer_script`) calls a `Runtime.addBinding`
binding; every call surfaces as a `Runtime.bindingCalled` event whose payload
is one JSON message. `pump()` drains those events on the caller's thread, so
collectors and the session are only ever touched from one loop.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from ..models.layout_shift import Rect
from ..models.web_vitals import VitalReport, to_vital_name
from ..platform.boundary import ElementBoundary
from ..platform.entries import RawEntry, parse_entry
from ..platform.feed import PlatformFeed
from .observer_script import BINDING_NAME, observer_script

_LOGGER = logging.getLogger("vitalscope.cdp.bridge")

BINDING_EVENT = "Runtime.bindingCalled"


class CdpTransport(Protocol):
    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]: ...

    def drain_events(self, *, max_messages: int = 50) -> int: ...

    def pop_events(self, method: str | None = None) -> list[dict[str, Any]]: ...


class CdpPlatformBridge:
    def __init__(
        self,
        conn: CdpTransport,
        feed: PlatformFeed,
        *,
        boundary: ElementBoundary | None = None,
        binding_name: str = BINDING_NAME,
    ) -> None:
        self.conn = conn
        self.feed = feed
        self.boundary = boundary
        self.binding_name = binding_name
        self.hello_received = False
        self.page_version: str | None = None
        self._script_id: str | None = None

    def install(self) -> None:
        """Enable domains, expose the binding and inject the observer (now and on new documents)."""
        selector = self.boundary.selector if self.boundary is not None else None
        source = observer_script(selector, binding_name=self.binding_name)
        self.conn.send("Runtime.enable")
        self.conn.send("Page.enable")
        self.conn.send("Runtime.addBinding", {"name": self.binding_name})
        added = self.conn.send("Page.addScriptToEvaluateOnNewDocument", {"source": source})
        script_id = added.get("identifier")
        self._script_id = script_id if isinstance(script_id, str) else None
        result = self.conn.send("Runtime.evaluate", {"expression": source, "returnByValue": True})
        _LOGGER.info("observer installed binding=%s result=%s", self.binding_name, result.get("result", {}).get("value"))
        self.pump(0)

    def uninstall(self) -> None:
        """Stop the in-page observers and drop the binding and the new-document script."""
        if self._script_id:
            self.conn.send("Page.removeScriptToEvaluateOnNewDocument", {"identifier": self._script_id})
            self._script_id = None
        self.conn.send("Runtime.evaluate", {"expression": "globalThis.__vitalscope && globalThis.__vitalscope.disconnect()"})
        self.conn.send("Runtime.removeBinding", {"name": self.binding_name})

    def pump(self, max_messages: int = 200) -> int:
        """Process pending binding calls; returns how many messages were handled."""
        if max_messages > 0:
            self.conn.drain_events(max_messages=max_messages)
        handled = 0
        for event in self.conn.pop_events(BINDING_EVENT):
            if self.ingest(event):
                handled += 1
        return handled

    # ──────────────────────────────────────────────────────────────────
    # Messages
    # ──────────────────────────────────────────────────────────────────

    def ingest(self, event: dict[str, Any]) -> bool:
        """Route one `Runtime.bindingCalled` event; malformed payloads are logged and dropped."""
        params = event.get("params") if isinstance(event, dict) else None
        if not isinstance(params, dict) or params.get("name") != self.binding_name:
            return False
        try:
            message = json.loads(params.get("payload") or "")
        except (TypeError, json.JSONDecodeError):
            _LOGGER.debug("dropping unparsable binding payload")
            return False
        if not isinstance(message, dict):
            _LOGGER.debug("dropping non-object binding payload")
            return False

        kind = message.get("kind")
        if kind == "hello":
            return self._on_hello(message)
        if kind == "entries":
            return self._on_entries(message)
        if kind == "vital":
            return self._on_vital(message)
        if kind == "boundary":
            return self._on_boundary(message)
        _LOGGER.debug("dropping binding payload kind=%r", kind)
        return False

    def _sync_clock(self, message: dict[str, Any]) -> None:
        now = message.get("now")
        if isinstance(now, (int, float)) and not isinstance(now, bool):
            self.feed.sync_clock(float(now))

    def _on_hello(self, message: dict[str, Any]) -> bool:
        supported = message.get("supportedEntryTypes")
        origin = message.get("origin")
        time_origin = message.get("timeOrigin")
        self.feed.configure(
            supported_entry_types=[t for t in supported if isinstance(t, str)] if isinstance(supported, list) else None,
            origin=origin if isinstance(origin, str) and origin != "null" else None,
            time_origin=float(time_origin) if isinstance(time_origin, (int, float)) else None,
        )
        self._sync_clock(message)
        self.hello_received = True
        version = message.get("version")
        self.page_version = version if isinstance(version, str) else None
        _LOGGER.info(
            "page observer ready version=%s origin=%s types=%s",
            self.page_version,
            self.feed.origin,
            ",".join(self.feed.supported_entry_types),
        )
        return True

    def _on_entries(self, message: dict[str, Any]) -> bool:
        raw_entries = message.get("entries")
        if not isinstance(raw_entries, list):
            _LOGGER.debug("entries payload without list")
            return False
        self._sync_clock(message)
        entries: list[RawEntry] = []
        for raw in raw_entries:
            entry = parse_entry(raw)
            if entry is None:
                _LOGGER.debug("dropping malformed performance entry")
                continue
            entries.append(entry)
        if entries:
            self.feed.dispatch(entries)
        return True

    def _on_vital(self, message: dict[str, Any]) -> bool:
        name = to_vital_name(message.get("name"))
        value = message.get("value")
        if name is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            _LOGGER.debug("dropping malformed vital report name=%r", message.get("name"))
            return False
        delta = message.get("delta")
        nav_type = message.get("navigationType")
        self.feed.report_vital(
            VitalReport(
                name=name,
                value=float(value),
                id=str(message.get("id") or ""),
                delta=float(delta) if isinstance(delta, (int, float)) and not isinstance(delta, bool) else 0.0,
                navigation_type=nav_type if isinstance(nav_type, str) and nav_type else "navigate",
            )
        )
        return True

    def _on_boundary(self, message: dict[str, Any]) -> bool:
        if self.boundary is None:
            return False
        path = message.get("path")
        rect = message.get("rect")
        if isinstance(path, list) and path:
            self.boundary.update([str(p) for p in path], Rect.from_any(rect) if isinstance(rect, dict) else None)
        else:
            self.boundary.update(None)
        _LOGGER.debug("boundary %s present=%s", self.boundary.selector, self.boundary.present)
        return True

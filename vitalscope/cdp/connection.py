"""Raw Chrome DevTools Protocol connection and target discovery."""

from __future__ import annotations

import json
import logging
import socket
import time
from contextlib import suppress
from typing import Any
from urllib.error import URLError
from urllib.request import urlopen

import websocket

from ..errors import CdpError

_LOGGER = logging.getLogger("vitalscope.cdp")

MAX_EVENT_QUEUE = 2000


def _is_timeout(exc: BaseException) -> bool:
    msg = str(exc).lower()
    return isinstance(exc, (TimeoutError, websocket.WebSocketTimeoutException)) or "timed out" in msg


class CdpConnection:
    """Low-level CDP WebSocket connection.

    Events that arrive while waiting for a command response are queued (bounded,
    oldest dropped) so nothing emitted by the page is lost between commands.
    """

    def __init__(self, ws_url: str, timeout: float = 5.0, *, max_event_queue: int = MAX_EVENT_QUEUE) -> None:
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (OSError, websocket.WebSocketException) as exc:
            raise CdpError(f"cannot connect to {ws_url}: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = max(1, int(max_event_queue))

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            dropped = len(self._event_queue) - self._max_event_queue
            del self._event_queue[:dropped]
            _LOGGER.debug("cdp event queue full; dropped %d oldest", dropped)

    def pop_events(self, method: str | None = None) -> list[dict[str, Any]]:
        """Remove and return queued events (all, or only those named `method`)."""
        if method is None:
            events, self._event_queue = self._event_queue, []
            return events
        events = [ev for ev in self._event_queue if ev.get("method") == method]
        if events:
            self._event_queue = [ev for ev in self._event_queue if ev.get("method") != method]
        return events

    def drain_events(self, *, max_messages: int = 50) -> int:
        """Queue already-received events without blocking; returns how many were read.

        Stops at the first non-event message so no command response is consumed.
        """
        drained = 0
        for _ in range(max(0, int(max_messages))):
            try:
                self.ws.settimeout(0.0)
                raw = self.ws.recv()
            except Exception:  # noqa: BLE001
                break

            try:
                data = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                continue

            if isinstance(data, dict) and isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                drained += 1
                continue
            break

        return drained

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a CDP command and wait for its response."""
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params

        try:
            self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except Exception as exc:  # noqa: BLE001
            raise CdpError(f"{method}: {exc}") from exc

        return self._recv_until(msg_id, method)

    def _recv_until(self, expected_id: int, method: str) -> dict[str, Any]:
        deadline = time.time() + self.timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise CdpError(f"{method}: CDP response timed out")

            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except Exception as exc:  # noqa: BLE001
                if _is_timeout(exc):
                    continue
                raise CdpError(f"{method}: {exc}") from exc

            try:
                data = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                continue
            if not isinstance(data, dict):
                continue

            if isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                continue

            if data.get("id") == expected_id:
                if "error" in data:
                    raise CdpError(f"{method}: {data['error']}")
                result = data.get("result")
                return result if isinstance(result, dict) else {}

    def close(self) -> None:
        """Close the socket; never raises."""
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(Exception):
                sock.shutdown(socket.SHUT_RDWR)
        with suppress(Exception):
            self.ws.close()

    def __enter__(self) -> CdpConnection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ──────────────────────────────────────────────────────────────────────────
# Target discovery (DevTools HTTP endpoint)
# ──────────────────────────────────────────────────────────────────────────


def _http_get_json(url: str, timeout: float = 2.0) -> Any:
    try:
        with urlopen(url, timeout=timeout) as resp:
            return json.loads(resp.read().decode())
    except (URLError, OSError, ValueError) as exc:
        raise CdpError(f"GET {url}: {exc}") from exc


def list_targets(host: str = "127.0.0.1", port: int = 9222, *, timeout: float = 2.0) -> list[dict[str, Any]]:
    data = _http_get_json(f"http://{host}:{port}/json/list", timeout=timeout)
    if not isinstance(data, list):
        return []
    return [t for t in data if isinstance(t, dict)]


def pick_page_target(targets: list[dict[str, Any]], url_contains: str | None = None) -> dict[str, Any] | None:
    """First debuggable page target, optionally one whose URL contains a substring."""
    for target in targets:
        if target.get("type") != "page" or not target.get("webSocketDebuggerUrl"):
            continue
        if url_contains and url_contains not in str(target.get("url") or ""):
            continue
        return target
    return None

"""`vitalscope` command line: record a live page or analyze a saved snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from .cdp.bridge import CdpPlatformBridge
from .cdp.connection import CdpConnection, list_targets, pick_page_target
from .config import InstrumentationConfig
from .errors import CdpError, CliError
from .models.snapshot import snapshot_from_dict
from .pipeline import InstrumentationPipeline
from .platform.boundary import ElementBoundary
from .platform.feed import PlatformFeed
from .redaction import redact_url_brief
from .report import render_runs, render_snapshot, render_suggestions
from .session import use_instrumentation
from .suggestions import analyze

_LOGGER = logging.getLogger("vitalscope.cli")

POLL_INTERVAL_S = 0.05
HELLO_TIMEOUT_S = 5.0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vitalscope", description="Capture page performance telemetry over CDP.")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("record", help="record a session on a running Chrome tab")
    rec.add_argument("--seconds", type=float, default=10.0, help="recording length (default: 10)")
    rec.add_argument("--target", default=None, help="pick the first tab whose URL contains this text")
    rec.add_argument("--boundary", default=None, help="CSS selector scoping layout-shift attribution")
    rec.add_argument("--json", action="store_true", help="print the snapshot, run and suggestions as JSON")

    ana = sub.add_parser("analyze", help="print suggestions for a saved snapshot JSON file")
    ana.add_argument("file", type=Path)
    return parser


def _wait_for_hello(bridge: CdpPlatformBridge, timeout: float) -> None:
    deadline = time.monotonic() + timeout
    while not bridge.hello_received:
        bridge.pump()
        if bridge.hello_received:
            return
        if time.monotonic() >= deadline:
            raise CliError(
                command="record",
                reason="page observer did not report in",
                suggestion="reload the tab or check that the page allows script evaluation",
            )
        time.sleep(POLL_INTERVAL_S)


def _teardown(bridge: CdpPlatformBridge, conn: CdpConnection) -> None:
    try:
        bridge.uninstall()
    except CdpError as exc:
        _LOGGER.warning("observer teardown failed: %s", exc)
    finally:
        conn.close()


def cmd_record(args: argparse.Namespace, config: InstrumentationConfig) -> int:
    if args.target:
        config.target_url = args.target
    if args.boundary:
        config.boundary_selector = args.boundary
    seconds = max(0.0, float(args.seconds))

    try:
        targets = list_targets(config.cdp_host, config.cdp_port, timeout=config.cdp_timeout)
    except CdpError as exc:
        raise CliError(
            command="record",
            reason=str(exc),
            suggestion=f"start Chrome with --remote-debugging-port={config.cdp_port}",
        ) from exc
    target = pick_page_target(targets, config.target_url)
    if target is None:
        raise CliError(
            command="record",
            reason="no matching page target",
            suggestion="open the page first or adjust --target",
            details={"target": config.target_url, "pages": len(targets)},
        )
    _LOGGER.info("attaching to %s", redact_url_brief(str(target.get("url") or "")))

    feed = PlatformFeed(buffer_size=config.feed_buffer_size)
    boundary = ElementBoundary(selector=config.boundary_selector) if config.boundary_selector else None

    try:
        conn = CdpConnection(str(target["webSocketDebuggerUrl"]), timeout=config.cdp_timeout)
    except CdpError as exc:
        raise CliError(command="record", reason=str(exc)) from exc

    bridge = CdpPlatformBridge(conn, feed, boundary=boundary)
    try:
        bridge.install()
        _wait_for_hello(bridge, HELLO_TIMEOUT_S)

        pipeline = InstrumentationPipeline(feed, config=config, boundary=boundary)
        with pipeline, pipeline.provide():
            session = use_instrumentation()
            session.start()
            deadline = time.monotonic() + seconds
            while time.monotonic() < deadline:
                bridge.pump()
                time.sleep(POLL_INTERVAL_S)
            bridge.pump()
            run = session.stop()
            runs = session.runs_history
            snapshot = session.snapshot
            suggestions = analyze(snapshot)
    except CdpError as exc:
        raise CliError(command="record", reason=str(exc)) from exc
    finally:
        _teardown(bridge, conn)

    if args.json:
        payload: dict[str, Any] = {
            "snapshot": snapshot.to_dict(),
            "run": run.to_dict() if run is not None else None,
            "suggestions": [s.to_dict() for s in suggestions],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    print(render_snapshot(snapshot))
    print("\nRuns (newest first):")
    print(render_runs(runs))
    print()
    print(render_suggestions(suggestions))
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    path: Path = args.file
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CliError(command="analyze", reason=f"cannot read {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise CliError(command="analyze", reason=f"{path} is not valid JSON: {exc.msg}") from exc

    # Accept both a bare snapshot and `record --json` output.
    if isinstance(data, dict) and isinstance(data.get("snapshot"), dict):
        data = data["snapshot"]
    try:
        snapshot = snapshot_from_dict(data)
    except TypeError as exc:
        raise CliError(command="analyze", reason=str(exc), suggestion="pass a file written by `record --json`") from exc

    print(render_suggestions(analyze(snapshot)))
    return 0


def main(argv: list[str] | None = None) -> int:
    config = InstrumentationConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    args = _build_parser().parse_args(argv)
    try:
        if args.command == "record":
            return cmd_record(args, config)
        return cmd_analyze(args)
    except CliError as exc:
        _LOGGER.debug("command failed: %s", exc.to_dict())
        print(f"vitalscope: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())

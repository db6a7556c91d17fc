#!/usr/bin/env python3
"""Record one session on a running Chrome tab and save `record --json` output to a file.

    python scripts/record_session.py out.json --seconds 15 --target localhost:5173
"""

from __future__ import annotations

import argparse
import contextlib
import io
import sys
from pathlib import Path

from vitalscope.main import main as vitalscope_main


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("output", type=Path)
    parser.add_argument("--seconds", default="10")
    parser.add_argument("--target", default=None)
    parser.add_argument("--boundary", default=None)
    args = parser.parse_args()

    argv = ["record", "--json", "--seconds", args.seconds]
    if args.target:
        argv += ["--target", args.target]
    if args.boundary:
        argv += ["--boundary", args.boundary]

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        code = vitalscope_main(argv)
    if code != 0:
        return code
    args.output.write_text(buf.getvalue(), encoding="utf-8")
    print(f"[vitalscope] saved {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
Inquiry Relay CLI

Commands:

1) serve
   - Run the relay HTTP server (FastAPI app in runtime.api.server) with
     uvicorn.

2) schedule
   - Parse a polling interval string (default: RELAY_POLLING_INTERVALS)
     and print the delay before each attempt, the cumulative wait and the
     point at which a chain times out.

Equivalent to starting the server directly with:

    uvicorn runtime.api.server:app --reload
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import settings
from core.polling.delay_schedule import DelaySchedule


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int, reload: bool) -> None:
    """Run the relay server with uvicorn."""
    # Lazy import so `schedule` works without the server dependencies.
    import uvicorn

    print(f"[Relay] Serving on http://{host}:{port}/sse")
    print(f"[Relay] Inquiry API: {settings.inquiry_api_base_url}")
    uvicorn.run(
        "runtime.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# schedule
# ---------------------------------------------------------------------------


def describe_schedule(schedule: DelaySchedule) -> List[str]:
    """Return one line per attempt plus the timeout line."""
    lines = []
    elapsed = 0
    for attempt_index, delay in enumerate(schedule):
        elapsed += delay
        lines.append(
            f"attempt {attempt_index + 1}: wait {delay}s (status call at +{elapsed}s)"
        )
    lines.append(f"timeout after {len(schedule)} attempt(s), +{elapsed}s")
    return lines


def cmd_schedule(intervals: str, default: int) -> None:
    schedule = DelaySchedule.parse(intervals, default=default)
    print(f"[Relay] Polling intervals: {list(schedule)}")
    for line in describe_schedule(schedule):
        print(f"[Relay]   {line}")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inquiry Relay CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Run the relay HTTP server")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8080)
    p_serve.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )

    # schedule
    p_schedule = subparsers.add_parser(
        "schedule",
        help="Show the parsed polling delay schedule",
    )
    p_schedule.add_argument(
        "--intervals",
        default=settings.polling_intervals_text,
        help=(
            "Comma-separated delays in seconds "
            "(default: RELAY_POLLING_INTERVALS or '5,10,20,30')"
        ),
    )
    p_schedule.add_argument(
        "--default",
        type=int,
        default=settings.default_poll_delay,
        help="Fallback delay used when the intervals cannot be parsed",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(host=args.host, port=args.port, reload=args.reload)
    elif args.command == "schedule":
        cmd_schedule(intervals=args.intervals, default=args.default)
    else:
        parser.error(f"Unknown command: {args.command}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

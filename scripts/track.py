#!/usr/bin/env python3
"""Run the location tracker and print every update as a JSON line.

Configuration is read from ``TOWNPASS_*`` environment variables; command
line flags override the most common ones.  The rolling history is printed
on exit.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from townpass_location import LocationTracker, TownpassConfig, TownpassError


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track location and stream updates.")
    parser.add_argument("--provider", choices=("replay", "http", "mqtt"), help="Location provider kind")
    parser.add_argument("--replay-file", type=Path, help="JSON list of fixes for the replay provider")
    parser.add_argument("--http-url", help="Endpoint for the http provider")
    parser.add_argument("--storage-dir", type=Path, help="Directory for the preferences file")
    parser.add_argument(
        "--duration",
        type=float,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _stream(tracker: LocationTracker) -> None:
    async for update in tracker.subscribe():
        print(json.dumps(update), flush=True)


async def main() -> int:
    args = _parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides = {
        key: value
        for key, value in (
            ("provider", args.provider),
            ("replay_file", args.replay_file),
            ("http_url", args.http_url),
            ("storage_dir", args.storage_dir),
        )
        if value is not None
    }
    try:
        config = TownpassConfig.from_env(**overrides)
    except TownpassError as exc:
        print(f"Configuration error: {exc}")
        return 2

    async with LocationTracker(config) as tracker:
        streamer = asyncio.create_task(_stream(tracker))
        await tracker.handle("start")
        try:
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            await tracker.handle("stop")
            tracker.bridge.cancel()
            await streamer
            history = [sample.to_payload() for sample in tracker.history.samples()]
            print(json.dumps({"history": history}, indent=2))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        raise SystemExit(130) from None

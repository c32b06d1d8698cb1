#!/usr/bin/env python3
"""Print the stored location history from a preferences file."""

from __future__ import annotations

import argparse
import json
from datetime import UTC, datetime
from pathlib import Path

from townpass_location import FilePreferences, LocationHistoryCache
from townpass_location._constants import HISTORY_KEY, PREFERENCES_NAME


def main() -> None:
    parser = argparse.ArgumentParser(description="Dump the rolling location history.")
    parser.add_argument("storage_dir", type=Path, help="Directory holding the preferences file")
    parser.add_argument("--name", default=PREFERENCES_NAME, help="Preferences file name (without .json)")
    parser.add_argument("--key", default=HISTORY_KEY, help="History key")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    args = parser.parse_args()

    history = LocationHistoryCache(FilePreferences(args.storage_dir, args.name), key=args.key)
    samples = history.samples()
    if args.json_mode:
        print(json.dumps([sample.to_payload() for sample in samples], indent=2))
        return

    now = datetime.now(UTC)
    print(f"{len(samples)} samples (retention {history.retention.total_seconds():.0f}s)")
    for sample in samples:
        age = (now - sample.captured_at_datetime).total_seconds()
        print(f"  {sample.captured_at}  {sample.latitude:>11.6f} {sample.longitude:>11.6f}  age={age:.1f}s")


if __name__ == "__main__":
    main()

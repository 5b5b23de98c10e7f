from __future__ import annotations

"""CLI helper for printing the outcome summary of a batch run."""

import argparse
from collections import Counter
from pathlib import Path
from typing import Sequence

from .telemetry import latest_run_path
from .utils import load_json_file


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the run summary CLI."""

    parser = argparse.ArgumentParser(
        description="Show the per-case outcome summary of a scraper run.",
    )
    parser.add_argument(
        "--run-file",
        type=Path,
        help="Run telemetry JSON to summarise.",
    )
    parser.add_argument(
        "--latest",
        action="store_true",
        help="Summarise the most recent run.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the run summary CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    run_path = args.run_file
    if run_path is None and args.latest:
        run_path = latest_run_path()
    if run_path is None:
        parser.error("You must provide --run-file or --latest (and have at least one run)")

    payload = load_json_file(run_path)
    if not isinstance(payload, dict):
        parser.error(f"Run file {run_path} does not exist or is not valid JSON")

    entries = [entry for entry in payload.get("entries", []) if isinstance(entry, dict)]
    status_counts = Counter(entry.get("status", "unknown") for entry in entries)
    fail_reasons = Counter(
        entry.get("reason") or "unknown" for entry in entries if entry.get("status") == "failed"
    )

    print(f"Run {payload.get('run_id', run_path)}")
    for status, count in sorted(status_counts.items()):
        print(f"  {status}: {count}")

    if fail_reasons:
        print("\nFail reasons:")
        for code, count in sorted(fail_reasons.items()):
            print(f"  {code}: {count}")

        print("\nFailed cases:")
        for entry in entries:
            if entry.get("status") == "failed":
                print(f"  {entry.get('case_id')}: {entry.get('error_message') or entry.get('reason')}")

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())

"""Batch driver and command line entrypoint for case searches.

Cases are fetched strictly one after another. A failure only ends the case it
happened in; the batch carries on with the next id. A configuration problem
stops the run before the first request.
"""

from __future__ import annotations

import argparse
import csv
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config
from .case_fetcher import CaseFetcher, SearchError
from .config_validation import validate_runtime_config
from .error_codes import ErrorCode
from .http_client import RequestError, build_http_client
from .logging_utils import _scraper_event
from .models import split_case_id
from .retry_policy import decide_retry
from .telemetry import RunTelemetry
from .utils import ensure_dirs, log_line, setup_run_logger

Outcome = Tuple[str, str, Dict[str, Any]]


def load_case_ids_from_csv(csv_path: Path, column: str = "case_id") -> List[str]:
    """Read case ids from ``column`` of a CSV file.

    Raises ``ValueError`` when the file is missing, has no rows, or lacks the
    column.
    """

    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise ValueError(f'Unable to find CSV at "{csv_path}"')

    with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
        rows = list(csv.DictReader(handle))

    if not rows:
        raise ValueError(f'Unable to find any rows in the CSV at "{csv_path}"')
    if column not in rows[0]:
        raise ValueError(f'Unable to find the "{column}" in the CSV at "{csv_path}"')

    return [(row.get(column) or "").strip() for row in rows if (row.get(column) or "").strip()]


def _fetch_one(
    fetcher: CaseFetcher,
    case_id: str,
    *,
    skip_existing: bool,
    max_attempts: int,
) -> Outcome:
    try:
        split_case_id(case_id)
    except ValueError as exc:
        log_line(f"[RUN] {exc}")
        return "failed", ErrorCode.INVALID_CASE_ID, {"case_id": case_id, "error_message": str(exc)}

    attempt = 0
    while True:
        attempt += 1
        http_status: Optional[int] = None
        try:
            record = fetcher.fetch_case(case_id, skip_existing=skip_existing)
        except SearchError as exc:
            error_code, message = exc.error_code, exc.banner
        except RequestError as exc:
            error_code, message, http_status = exc.error_code, str(exc), exc.http_status
        except Exception as exc:  # noqa: BLE001
            error_code, message = ErrorCode.INTERNAL, repr(exc)
        else:
            if record is None:
                return "skipped", "exists", {"case_id": case_id}
            return (
                "fetched",
                "",
                {
                    "case_id": case_id,
                    "costs": len(record.costs),
                    "actions": len(record.actions),
                    "attempts": attempt,
                },
            )

        log_line(f"[RUN] case={case_id} attempt={attempt} failed ({error_code}): {message}")
        if not decide_retry(
            attempt,
            max_attempts,
            error_code=error_code,
            http_status=http_status,
            case_id=case_id,
        ):
            return (
                "failed",
                error_code,
                {
                    "case_id": case_id,
                    "error_message": message,
                    "http_status": http_status,
                    "attempts": attempt,
                },
            )


def run_batch(
    case_ids: Iterable[str],
    fetcher: CaseFetcher,
    *,
    skip_existing: bool = False,
    max_attempts: int = 1,
    telemetry: Optional[RunTelemetry] = None,
) -> Dict[str, int]:
    """Fetch each case in turn and return counts per outcome."""

    counts = {"fetched": 0, "skipped": 0, "failed": 0}
    for raw_id in case_ids:
        case_id = (raw_id or "").strip()
        if not case_id:
            continue
        status, reason, meta = _fetch_one(
            fetcher,
            case_id,
            skip_existing=skip_existing,
            max_attempts=max(1, max_attempts),
        )
        counts[status] += 1
        if telemetry is not None:
            telemetry.add(status, reason, meta)

    _scraper_event("run", phase="summary", **counts)
    log_line(
        f"Done. fetched={counts['fetched']} skipped={counts['skipped']} failed={counts['failed']}"
    )
    return counts


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search court cases and save their details.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--case-id", help="Case ID to search for.")
    source.add_argument("--csv", help="Path to a CSV file of case IDs (see --csv-column).")
    parser.add_argument("--csv-column", default="case_id", help="Column to use with --csv.")
    parser.add_argument("--no-cache", action="store_true", help="Turn off the response cache.")
    parser.add_argument(
        "--cache",
        type=int,
        default=config.CACHE_TTL_SECONDS,
        help="Time to cache results in seconds.",
    )
    parser.add_argument("--output", default=None, help="The directory to output results to.")
    parser.add_argument("--court-type", default=None, help="Court type (SCRAPER_CASES_COURT_TYPE).")
    parser.add_argument(
        "--county-number",
        default=None,
        help="Two-digit county number (SCRAPER_CASES_COUNTY_NUMBER).",
    )
    parser.add_argument(
        "--new",
        action="store_true",
        help="Skip cases whose raw HTML file already exists in the case directory.",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=config.MAX_ATTEMPTS,
        help="Attempts per case for retryable failures (default: no retry).",
    )
    return parser


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.output:
        config.set_output_dir(Path(args.output))

    try:
        validate_runtime_config("cases")
    except ValueError as exc:
        parser.error(str(exc))

    court_type = args.court_type or config.CASES_COURT_TYPE
    county_number = args.county_number or config.CASES_COUNTY_NUMBER
    if not court_type or not county_number:
        parser.error("--court-type and --county-number (or their environment variables) are required")

    if args.case_id:
        case_ids = [args.case_id]
    else:
        try:
            case_ids = load_case_ids_from_csv(Path(args.csv), args.csv_column)
        except ValueError as exc:
            parser.error(str(exc))

    ensure_dirs()
    setup_run_logger()

    fetcher = CaseFetcher(
        build_http_client(),
        cases_url=config.CASES_URL,
        output_dir=config.cases_output_dir(),
        cache_dir=config.CACHE_DIR,
        username=config.CASES_USERNAME,
        password=config.CASES_PASSWORD,
        court_type=court_type,
        county_number=county_number,
        cache_ttl=0 if args.no_cache else max(0, args.cache),
        timeout=config.REQUEST_TIMEOUT_S,
    )

    telemetry = RunTelemetry(mode="new" if args.new else "all")
    counts = run_batch(
        case_ids,
        fetcher,
        skip_existing=args.new,
        max_attempts=args.max_attempts,
        telemetry=telemetry,
    )
    run_path = telemetry.finalize(extra={"counts": counts})
    log_line(f"Run telemetry saved to {run_path}")
    return 0 if counts["failed"] == 0 else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli_entrypoint())

__all__ = ["run_batch", "load_case_ids_from_csv", "_cli_entrypoint"]

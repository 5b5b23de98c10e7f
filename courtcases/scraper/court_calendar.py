"""Daily court calendar scrape: one CSV of hearings per day."""
from __future__ import annotations

import argparse
import re
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from . import config
from .config_validation import validate_runtime_config
from .date_utils import parse_calendar_date
from .http_client import HttpClient, build_http_client
from .keyed_store import write_table
from .logging_utils import _scraper_event
from .utils import ensure_dirs, log_line

CALENDAR_COLUMNS = ("name", "date", "time", "hearing", "caption", "case")

_WS = re.compile(r"\s+")


def _cell_text(cell) -> str:
    return _WS.sub(" ", cell.get_text(" ")).strip()


def calendar_form(day: date, county: str) -> Dict[str, str]:
    return {
        "court": "D",
        "countyC": "",
        "countyD": county,
        "selectRadio": "date",
        "searchField": day.strftime("%m/%d/%Y"),
        "submitButton": "Submit",
    }


def parse_calendar(html: str) -> List[Dict[str, str]]:
    """Return one row per hearing across every courtroom table on the page.

    Rows without a case number are spacer or header rows and are skipped.
    """

    soup = BeautifulSoup(html, "html5lib")
    rows: List[Dict[str, str]] = []
    for table in soup.select("table.table-condensed"):
        heading_cell = table.select_one('thead th[colspan="6"]')
        heading = _cell_text(heading_cell) if heading_cell is not None else ""

        for tr in table.select("tbody tr"):
            cells = [_cell_text(td) for td in tr.find_all("td")]
            if len(cells) < len(CALENDAR_COLUMNS) or not cells[5]:
                continue
            row = {"ctrm": heading}
            row.update(zip(CALENDAR_COLUMNS, cells))
            rows.append(row)
    return rows


def fetch_calendar(
    http_client: HttpClient,
    day: date,
    *,
    url: str,
    county: str,
    ttl: int = config.CALENDAR_CACHE_TTL_SECONDS,
    timeout: float = config.REQUEST_TIMEOUT_S,
) -> List[Dict[str, str]]:
    """Fetch and parse the calendar for ``day``; raises ``RequestError``."""

    response = http_client.request(
        "POST",
        url,
        form=calendar_form(day, county),
        ttl=ttl,
        timeout=timeout,
    )
    rows = parse_calendar(response.text)
    _scraper_event("calendar", day=day.isoformat(), rows=len(rows), from_cache=response.from_cache)
    return rows


def save_calendar(rows: List[Dict[str, str]], day: date, output_dir: Optional[Path] = None) -> Path:
    output_dir = Path(output_dir or config.calendar_output_dir())
    path = output_dir / f"{day.isoformat()}.csv"
    write_table(path, rows)
    return path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Save the court calendar for one day as CSV.")
    parser.add_argument("--date", default=None, help="MM/DD/YYYY or YYYY-MM-DD (default: today).")
    parser.add_argument("--county", default=None, help="County (SCRAPER_CALENDAR_COUNTY).")
    parser.add_argument("--output", default=None, help="The directory to output results to.")
    parser.add_argument("--no-cache", action="store_true", help="Turn off the response cache.")
    args = parser.parse_args(argv)

    if args.output:
        config.set_output_dir(Path(args.output))

    try:
        validate_runtime_config("calendar")
        day = parse_calendar_date(args.date) if args.date else date.today()
    except ValueError as exc:
        parser.error(str(exc))

    ensure_dirs()
    rows = fetch_calendar(
        build_http_client(),
        day,
        url=config.CALENDAR_URL,
        county=args.county or config.CALENDAR_COUNTY,
        ttl=0 if args.no_cache else config.CALENDAR_CACHE_TTL_SECONDS,
    )
    path = save_calendar(rows, day)
    log_line(f"Done. Saved to: {path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())


__all__ = ["parse_calendar", "fetch_calendar", "save_calendar", "calendar_form", "main"]

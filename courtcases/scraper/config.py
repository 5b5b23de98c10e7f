"""Configuration constants for the court case scraper."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

OUTPUT_DIR: Path = Path(os.getenv("SCRAPER_OUTPUT_DIR", "output"))
CACHE_DIR: Path = Path(os.getenv("SCRAPER_CACHE_DIR", ".cache"))
LOG_DIR: Path = OUTPUT_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
RUNS_DIR: Path = OUTPUT_DIR / "runs"
EXPORTS_DIR: Path = OUTPUT_DIR / "exports"

CASES_URL: str = os.getenv("SCRAPER_CASES_URL", "").strip()
CASES_USERNAME: str = os.getenv("SCRAPER_CASES_USERNAME", "")
CASES_PASSWORD: str = os.getenv("SCRAPER_CASES_PASSWORD", "")
CASES_COURT_TYPE: str = os.getenv("SCRAPER_CASES_COURT_TYPE", "").strip()
CASES_COUNTY_NUMBER: str = os.getenv("SCRAPER_CASES_COUNTY_NUMBER", "").strip()

CALENDAR_URL: str = os.getenv("SCRAPER_CALENDAR_URL", "").strip()
CALENDAR_COUNTY: str = os.getenv("SCRAPER_CALENDAR_COUNTY", "").strip()

# Marker files live beside the response cache they guard.
CASE_MARKERS_NAME: str = "case-downloads.json"
ATTACHMENT_MARKERS_NAME: str = "action-downloads.json"


def _parse_seconds(env_var: str, default: float) -> float:
    """Parse a duration in seconds from the environment, falling back on junk."""

    try:
        return float(os.getenv(env_var, str(default)))
    except ValueError:
        return default


CACHE_TTL_SECONDS: int = int(_parse_seconds("SCRAPER_CACHE_TTL_SECONDS", 60 * 60 * 24))
CALENDAR_CACHE_TTL_SECONDS: int = int(
    _parse_seconds("SCRAPER_CALENDAR_CACHE_TTL_SECONDS", 60 * 60)
)
# One generous timeout per network call; expiry surfaces as a request error.
REQUEST_TIMEOUT_S: float = _parse_seconds("SCRAPER_REQUEST_TIMEOUT_S", 10 * 60)
# Process-wide throttle: at most one upstream request per interval.
REQUEST_INTERVAL_S: float = _parse_seconds("SCRAPER_REQUEST_INTERVAL_S", 3.0)
MAX_ATTEMPTS: int = int(os.getenv("SCRAPER_MAX_ATTEMPTS", "1"))

COMMON_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}


def set_output_dir(path: Path) -> None:
    """Point every output location at ``path`` (CLI ``--output``)."""

    global OUTPUT_DIR, LOG_DIR, LOG_FILE, RUNS_DIR, EXPORTS_DIR

    OUTPUT_DIR = Path(path)
    LOG_DIR = OUTPUT_DIR / "logs"
    LOG_FILE = LOG_DIR / "latest.log"
    RUNS_DIR = OUTPUT_DIR / "runs"
    EXPORTS_DIR = OUTPUT_DIR / "exports"


def cases_output_dir() -> Path:
    """Return the directory holding per-case folders and the keyed stores."""

    return OUTPUT_DIR / "cases"


def calendar_output_dir() -> Path:
    """Return the directory holding one calendar CSV per day."""

    return OUTPUT_DIR / "calendar"

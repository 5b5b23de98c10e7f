from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional

_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_CALENDAR_FORMATS: Iterable[str] = (
    "%m/%d/%Y",
    "%Y-%m-%d",
)


def parse_us_date(value: str | None) -> Optional[date]:
    """Parse a ``M/D/YYYY`` string into a calendar date.

    Returns ``None`` when the value is empty or not a real date, so callers
    can tell a failed parse apart from a valid date.
    """

    candidate = (value or "").strip()
    match = _US_DATE.match(candidate)
    if not match:
        return None

    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_iso(value: Optional[date]) -> str:
    """Format a calendar date as ``YYYY-MM-DD`` (empty string for ``None``)."""

    return value.isoformat() if value is not None else ""


def parse_calendar_date(value: str) -> date:
    """Parse a calendar lookup date given as ``MM/DD/YYYY`` or ``YYYY-MM-DD``."""

    candidate = (value or "").strip()
    for fmt in _CALENDAR_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date {value!r}; use MM/DD/YYYY or YYYY-MM-DD")


__all__ = ["parse_us_date", "format_iso", "parse_calendar_date"]

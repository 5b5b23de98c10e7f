"""Queries over the case detail page.

The page renders each section as a heading element carrying an id (for
example ``<h3 id="summary">``) followed by a Bootstrap ``.panel`` whose
``.panel-body`` holds the content.
"""
from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup, Tag

from .utils import log_line

SUMMARY = "summary"
PARTY_ATTORNEY = "party_attorney"
OFFENSE_INFO = "offense_info"
ARRESTING_OFFICERS = "arresting_officers"
CASE_SCHEDULE = "case_schedule"
COURT_COSTS = "court_costs"
FINANCIAL_ACTIVITY = "financial_activity"
REGISTER_OF_ACTIONS = "register_of_actions"

ERROR_BANNER_SELECTOR = ".alert-danger, .alert-block"

_WS = re.compile(r"\s+")


class ParseError(Exception):
    """A located panel does not have the expected structure."""


def load_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html5lib")


def _clean_text(node: Tag) -> str:
    """Trimmed text keeping the page's own line breaks, blank lines removed."""

    for br in node.find_all("br"):
        br.replace_with("\n")
    lines = (_WS.sub(" ", line).strip() for line in node.get_text().splitlines())
    return "\n".join(line for line in lines if line)


def error_banner(soup: BeautifulSoup) -> str:
    """Return the text of an upstream error banner, or ``""`` if none."""

    texts = [_WS.sub(" ", node.get_text(" ")).strip() for node in soup.select(ERROR_BANNER_SELECTOR)]
    return " ".join(text for text in texts if text)


def panel_after(soup: BeautifulSoup, heading_id: str) -> Tag | None:
    """Return the ``.panel`` immediately following the heading ``heading_id``.

    Returns ``None`` when the heading is absent. Raises ``ParseError`` when
    the heading exists but is not followed by a panel.
    """

    heading = soup.find(id=heading_id)
    if heading is None:
        return None
    panel = heading.find_next_sibling()
    if panel is None or "panel" not in (panel.get("class") or []):
        raise ParseError(f"Heading #{heading_id} is not followed by a panel")
    return panel


def _panel_body(soup: BeautifulSoup, heading_id: str) -> Tag | None:
    try:
        panel = panel_after(soup, heading_id)
    except ParseError as exc:
        log_line(f"[PARSE][WARN] {exc}; leaving field empty.")
        return None
    if panel is None:
        return None
    return panel.select_one(".panel-body")


def panel_text(soup: BeautifulSoup, heading_id: str) -> str:
    body = _panel_body(soup, heading_id)
    return _clean_text(body) if body is not None else ""


def panel_table_rows(soup: BeautifulSoup, heading_id: str) -> List[List[str]]:
    """Cell texts of every ``.table tbody tr`` inside the panel."""

    try:
        panel = panel_after(soup, heading_id)
    except ParseError as exc:
        log_line(f"[PARSE][WARN] {exc}; no rows extracted.")
        return []
    if panel is None:
        return []

    rows: List[List[str]] = []
    for tr in panel.select(".table tbody tr"):
        cells = [_WS.sub(" ", td.get_text(" ")).strip() for td in tr.find_all("td")]
        if cells:
            rows.append(cells)
    return rows


def panel_links(soup: BeautifulSoup, heading_id: str) -> List[str]:
    """``href`` values of the anchors inside the panel body, in page order."""

    body = _panel_body(soup, heading_id)
    if body is None:
        return []
    return [str(anchor["href"]) for anchor in body.find_all("a", href=True)]


__all__ = [
    "ParseError",
    "load_document",
    "error_banner",
    "panel_after",
    "panel_text",
    "panel_table_rows",
    "panel_links",
    "SUMMARY",
    "PARTY_ATTORNEY",
    "OFFENSE_INFO",
    "ARRESTING_OFFICERS",
    "CASE_SCHEDULE",
    "COURT_COSTS",
    "FINANCIAL_ACTIVITY",
    "REGISTER_OF_ACTIONS",
]

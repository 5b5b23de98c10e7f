"""Fetch one case from the case-search backend and persist everything it yields.

Per case ``X`` the fetcher writes, under ``<output>/cases/X/``:

- ``case.X.html``: the raw response, written before any parsing
- ``case.X.json``: the full record, costs and actions included
- ``case.X.costs.csv``, ``case.X.actions.csv`` and the one-row ``case.X.csv``
- ``actions/<date>-X_<image id>.pdf`` for each linked attachment

and merges the summary row and the action rows into the process-wide
``cases.csv`` / ``actions.csv`` stores.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from . import config, panels
from .attachments import attachment_id_from_url, download_attachment
from .date_utils import parse_us_date
from .download_state import DownloadMarkerStore
from .error_codes import ErrorCode
from .http_client import HttpClient, RequestError
from .keyed_store import KeyedTableStore, write_table
from .logging_utils import _scraper_event
from .models import CaseIdParts, CaseRecord, CostEntry, split_case_id
from .narrative import parse_actions
from .utils import log_line, save_json_file

SUMMARY_STORE_NAME = "cases.csv"
ACTIONS_STORE_NAME = "actions.csv"


class SearchError(Exception):
    """The backend answered, but with an error banner instead of a case."""

    error_code = ErrorCode.SEARCH_ERROR

    def __init__(self, case_id: str, banner: str) -> None:
        super().__init__(f"Error searching for {case_id}: {banner}")
        self.case_id = case_id
        self.banner = banner


def _cost_entries(case_id: str, rows: List[List[str]]) -> List[CostEntry]:
    costs: List[CostEntry] = []
    for cells in rows:
        if len(cells) < 4:
            log_line(f"[PARSE][WARN] case={case_id} skipping cost row with {len(cells)} cells")
            continue
        costs.append(
            CostEntry(
                case_id=case_id,
                incurred_by=cells[0],
                account=cells[1],
                date=parse_us_date(cells[2]),
                amount=cells[3],
            )
        )
    return costs


def extract_case(case_id: str, soup: BeautifulSoup) -> CaseRecord:
    """Build a :class:`CaseRecord` from a parsed case page.

    Missing or malformed panels leave their field empty.
    """

    actions_raw = panels.panel_text(soup, panels.REGISTER_OF_ACTIONS)
    return CaseRecord(
        case_id=case_id,
        summary=panels.panel_text(soup, panels.SUMMARY),
        parties=panels.panel_text(soup, panels.PARTY_ATTORNEY),
        offense=panels.panel_text(soup, panels.OFFENSE_INFO),
        arresting_officers=panels.panel_text(soup, panels.ARRESTING_OFFICERS),
        schedule=panels.panel_text(soup, panels.CASE_SCHEDULE),
        finances=panels.panel_text(soup, panels.FINANCIAL_ACTIVITY),
        actions_raw=actions_raw,
        costs=_cost_entries(case_id, panels.panel_table_rows(soup, panels.COURT_COSTS)),
        actions=parse_actions(actions_raw, case_id),
    )


class CaseFetcher:
    """Fetch, parse and persist cases one at a time."""

    def __init__(
        self,
        http_client: HttpClient,
        *,
        cases_url: str,
        output_dir: Optional[Path] = None,
        cache_dir: Optional[Path] = None,
        username: str = "",
        password: str = "",
        court_type: str = "",
        county_number: str = "",
        cache_ttl: int = config.CACHE_TTL_SECONDS,
        timeout: float = config.REQUEST_TIMEOUT_S,
    ) -> None:
        self.http_client = http_client
        self.cases_url = cases_url
        self.output_dir = Path(output_dir or config.cases_output_dir())
        cache_dir = Path(cache_dir or config.CACHE_DIR)
        self.username = username
        self.password = password
        self.court_type = court_type
        self.county_number = county_number
        self.cache_ttl = cache_ttl
        self.timeout = timeout

        self.case_markers = DownloadMarkerStore(cache_dir / config.CASE_MARKERS_NAME)
        self.attachment_markers = DownloadMarkerStore(cache_dir / config.ATTACHMENT_MARKERS_NAME)
        self.summary_store = KeyedTableStore(self.output_dir / SUMMARY_STORE_NAME, "case_id")
        self.actions_store = KeyedTableStore(self.output_dir / ACTIONS_STORE_NAME, "id")

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        if not (self.username or self.password):
            return None
        return (self.username, self.password)

    def case_dir(self, case_id: str) -> Path:
        return self.output_dir / case_id

    def raw_html_path(self, case_id: str) -> Path:
        return self.case_dir(case_id) / f"case.{case_id}.html"

    def search_form(self, parts: CaseIdParts) -> Dict[str, str]:
        # The backend wants the id split into type, year and sequence.
        return {
            "search": "1",
            "from_case_search": "1",
            "court_type": self.court_type,
            "county_num": self.county_number,
            "case_type": parts.case_type,
            "case_year": parts.case_year,
            "case_id": parts.case_seq,
        }

    def fetch_case(self, case_id: str, *, skip_existing: bool = False) -> Optional[CaseRecord]:
        """Fetch and persist ``case_id``.

        Returns ``None`` when ``skip_existing`` is set and the raw snapshot is
        already on disk. Raises ``ValueError`` for a malformed id,
        ``RequestError`` on transport failure and ``SearchError`` when the
        page carries an error banner.
        """

        parts = split_case_id(case_id)
        raw_path = self.raw_html_path(case_id)

        if skip_existing and raw_path.exists():
            log_line(f"Case {case_id} HTML output exists; skipping (new cases only).")
            _scraper_event("case", case_id=case_id, status="skipped", reason="exists")
            return None

        ttl = self.case_markers.effective_ttl(case_id, self.cache_ttl)
        if self.case_markers.should_force_refresh(case_id):
            log_line(f"Case {case_id} did not finish downloading, re-downloading.")
        log_line(f"Getting case{'' if self.cache_ttl else ' (cache off)'}: {case_id}")

        self.case_markers.begin_download(case_id)
        response = self.http_client.request(
            "POST",
            self.cases_url,
            form=self.search_form(parts),
            auth=self.auth,
            ttl=ttl,
            timeout=self.timeout,
        )

        raw_path.parent.mkdir(parents=True, exist_ok=True)
        raw_path.write_bytes(response.content)
        self.case_markers.end_download(case_id)

        soup = panels.load_document(response.text)
        banner = panels.error_banner(soup)
        if banner:
            log_line(f"Error from search\n===\n{banner}\n===")
            log_line(f"Error searching for {case_id}, use the --no-cache option to force a re-fetch.")
            raise SearchError(case_id, banner)

        record = extract_case(case_id, soup)
        self._download_attachments(record, panels.panel_links(soup, panels.REGISTER_OF_ACTIONS))
        self._write_case_files(record)
        self._merge_stores(record)

        _scraper_event(
            "case",
            case_id=case_id,
            status="fetched",
            from_cache=response.from_cache,
            costs=len(record.costs),
            actions=len(record.actions),
        )
        return record

    def _download_attachments(self, record: CaseRecord, links: List[str]) -> int:
        """Download every linked attachment; failures are logged and skipped."""

        downloaded = 0
        attachments_dir = self.case_dir(record.case_id) / "actions"
        for href in links:
            attachment_id = attachment_id_from_url(href)
            if attachment_id is None:
                log_line(
                    f"[ATTACHMENT][WARN] case={record.case_id} link without an id parameter: {href!r}; skipping."
                )
                continue
            try:
                download_attachment(
                    self.http_client,
                    self.attachment_markers,
                    case_id=record.case_id,
                    url=urljoin(self.cases_url, href),
                    attachment_id=attachment_id,
                    actions=record.actions,
                    output_dir=attachments_dir,
                    auth=self.auth,
                    cache_ttl=self.cache_ttl,
                    timeout=self.timeout,
                )
            except RequestError as exc:
                log_line(
                    f"There was an error downloading image {attachment_id} for case {record.case_id}: {exc}"
                )
                _scraper_event(
                    "error",
                    case_id=record.case_id,
                    attachment_id=attachment_id,
                    error_code=exc.error_code,
                    http_status=exc.http_status,
                )
                continue
            except OSError as exc:
                log_line(
                    f"There was an error saving image {attachment_id} for case {record.case_id}: {exc}"
                )
                _scraper_event(
                    "error",
                    case_id=record.case_id,
                    attachment_id=attachment_id,
                    error_code=ErrorCode.INTERNAL,
                    http_status=None,
                )
                continue
            downloaded += 1
            log_line(f"Downloaded image {attachment_id} for case {record.case_id}")
        return downloaded

    def _write_case_files(self, record: CaseRecord) -> None:
        case_dir = self.case_dir(record.case_id)
        prefix = f"case.{record.case_id}"
        write_table(case_dir / f"{prefix}.costs.csv", record.cost_rows())
        write_table(case_dir / f"{prefix}.actions.csv", record.action_rows())
        write_table(case_dir / f"{prefix}.csv", [record.summary_row()])
        save_json_file(case_dir / f"{prefix}.json", record.to_dict())

    def _merge_stores(self, record: CaseRecord) -> None:
        self.summary_store.merge([record.summary_row()])

        # A re-fetch replaces the case's actions wholesale; rows left over
        # from a longer earlier narrative would otherwise linger.
        actions = self.actions_store.load()
        for key in [k for k, row in actions.items() if row.get("case_id") == record.case_id]:
            del actions[key]
        for row in record.action_rows():
            self.actions_store.upsert(actions, row)
        self.actions_store.save(actions)


__all__ = ["CaseFetcher", "SearchError", "extract_case"]

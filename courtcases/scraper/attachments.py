"""Download of the image attachments linked from the register of actions."""
from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .download_state import DownloadMarkerStore
from .http_client import HttpClient
from .logging_utils import _scraper_event
from .models import ActionRecord
from .utils import log_line, sanitize_filename

UNKNOWN_DATE_PREFIX = "unknown-date"

_ATTACHMENT_ID_RE = re.compile(r"^[0-9A-Za-z_-]+$")


def attachment_id_from_url(url: str) -> Optional[str]:
    """Return the ``id`` query parameter of an attachment link, if usable."""

    values = parse_qs(urlparse(url).query).get("id") or []
    for value in values:
        value = value.strip()
        if value and _ATTACHMENT_ID_RE.match(value):
            return value
    return None


def attachment_key(case_id: str, attachment_id: str) -> str:
    return f"{case_id}-{attachment_id}"


def find_action(
    actions: Iterable[ActionRecord], case_id: str, attachment_id: str
) -> Optional[ActionRecord]:
    for action in actions:
        if action.case_id == case_id and action.attachment_id == attachment_id:
            return action
    return None


def attachment_filename(case_id: str, attachment_id: str, action_date: Optional[date]) -> str:
    prefix = action_date.isoformat() if action_date is not None else UNKNOWN_DATE_PREFIX
    return sanitize_filename(f"{prefix}-{case_id}_{attachment_id}.pdf")


def download_attachment(
    http_client: HttpClient,
    markers: DownloadMarkerStore,
    *,
    case_id: str,
    url: str,
    attachment_id: str,
    actions: Iterable[ActionRecord],
    output_dir: Path,
    auth: Optional[Tuple[str, str]] = None,
    cache_ttl: int = 0,
    timeout: float | None = None,
) -> Path:
    """Fetch one attachment and write it under ``output_dir``.

    Raises ``RequestError`` on transport failure or a non-success status; the
    marker for the attachment then stays set so the next run bypasses the
    cache.
    """

    key = attachment_key(case_id, attachment_id)
    ttl = markers.effective_ttl(key, cache_ttl)
    if markers.should_force_refresh(key):
        log_line(f"Attachment {attachment_id} for case {case_id} did not finish downloading, re-downloading.")

    action = find_action(actions, case_id, attachment_id)
    out_path = Path(output_dir) / attachment_filename(
        case_id, attachment_id, action.date if action is not None else None
    )

    markers.begin_download(key)
    kwargs = {"auth": auth, "ttl": ttl}
    if timeout is not None:
        kwargs["timeout"] = timeout
    response = http_client.request("GET", url, **kwargs)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(response.content)
    markers.end_download(key)

    _scraper_event(
        "attachment",
        case_id=case_id,
        attachment_id=attachment_id,
        path=out_path.name,
        bytes=len(response.content),
        from_cache=response.from_cache,
    )
    return out_path


__all__ = [
    "UNKNOWN_DATE_PREFIX",
    "attachment_id_from_url",
    "attachment_key",
    "attachment_filename",
    "find_action",
    "download_attachment",
]

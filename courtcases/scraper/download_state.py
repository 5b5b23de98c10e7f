"""Persisted in-progress markers for case and attachment downloads.

A marker is ``True`` only between issuing a fetch and the moment its body is
written to disk. A marker still ``True`` when a new run starts means the
previous process died mid-transfer, so the next fetch for that key must skip
the response cache.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from .logging_utils import _scraper_event
from .utils import log_line


class DownloadMarkerStore:
    """Flat ``key -> in progress`` mapping backed by one JSON file.

    Every mutation rewrites the whole file. If the file cannot be decoded
    (for example after a crash mid-write), every key is treated as stale for
    the lifetime of this store.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._markers: Dict[str, bool] = {}
        self._all_stale = False
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log_line(
                f"[MARKERS][WARN] Unreadable marker file {self.path} ({exc}); "
                "forcing refresh for every download."
            )
            self._all_stale = True
            return
        if not isinstance(data, dict):
            log_line(f"[MARKERS][WARN] Unexpected marker payload in {self.path}; forcing refresh.")
            self._all_stale = True
            return
        self._markers = {str(key): bool(value) for key, value in data.items()}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._markers), encoding="utf-8")

    def is_in_progress(self, key: str) -> bool:
        return self._markers.get(key, False)

    def should_force_refresh(self, key: str) -> bool:
        """Return ``True`` when the previous attempt for ``key`` never completed."""

        return self._all_stale or self.is_in_progress(key)

    def effective_ttl(self, key: str, default_ttl: int) -> int:
        """Cache time-to-live for the next fetch of ``key``."""

        if self.should_force_refresh(key):
            return 0
        return default_ttl

    def begin_download(self, key: str) -> None:
        """Persist ``key -> True``; call before any network request."""

        self._markers[key] = True
        self._save()
        _scraper_event("state", marker=self.path.name, key=key, to_status="in_progress")

    def end_download(self, key: str) -> None:
        """Persist ``key -> False`` once the response body is on disk."""

        self._markers[key] = False
        self._save()
        _scraper_event("state", marker=self.path.name, key=key, to_status="complete")


__all__ = ["DownloadMarkerStore"]

from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path
from typing import Callable, Mapping, Optional


def cache_key(method: str, url: str, form: Optional[Mapping[str, str]] = None) -> str:
    """Return a stable key for a request: method, URL and sorted form fields."""

    parts = [method.upper(), url]
    if form:
        parts.append(json.dumps(sorted((str(k), str(v)) for k, v in form.items())))
    return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()


class ResponseCache:
    """Persistent response cache with a per-lookup time-to-live.

    Each entry is a ``<key>.bin`` body plus a ``<key>.json`` metadata file
    recording status and fetch time.
    """

    def __init__(self, cache_dir: Path, *, now: Callable[[], float] = time.time) -> None:
        self.cache_dir = Path(cache_dir) / "responses"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._now = now

    def _paths(self, key: str) -> tuple[Path, Path]:
        return self.cache_dir / f"{key}.bin", self.cache_dir / f"{key}.json"

    def get(self, key: str, ttl: int) -> Optional[tuple[int, bytes]]:
        """Return ``(status, body)`` if cached less than ``ttl`` seconds ago.

        A ``ttl`` of zero or less always misses.
        """

        if ttl <= 0:
            return None
        body_path, meta_path = self._paths(key)
        if not (body_path.exists() and meta_path.exists()):
            return None
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except ValueError:
            return None
        fetched_at = float(meta.get("fetched_at", 0))
        if self._now() - fetched_at >= ttl:
            return None
        return int(meta.get("status", 200)), body_path.read_bytes()

    def put(self, key: str, status: int, body: bytes, *, url: str = "") -> None:
        body_path, meta_path = self._paths(key)
        body_path.write_bytes(body)
        meta_path.write_text(
            json.dumps({"status": status, "url": url, "fetched_at": self._now()}),
            encoding="utf-8",
        )


__all__ = ["ResponseCache", "cache_key"]

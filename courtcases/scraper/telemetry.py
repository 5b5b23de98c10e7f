"""Per-run telemetry for batch case fetches."""

from __future__ import annotations

import time
import uuid
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .utils import save_json_file


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


class RunTelemetry:
    """Collect one entry per case and write them as ``runs/run_<id>.json``."""

    def __init__(self, mode: str) -> None:
        self.run_id = f"{_ts()}_{uuid.uuid4().hex[:8]}"
        self.mode = mode
        self.started_at = time.time()
        self.entries: List[Dict[str, Any]] = []
        self.summary: Dict[str, Any] = defaultdict(int)

    def add(self, status: str, reason: str, meta: Dict[str, Any]) -> None:
        self.entries.append(
            {
                "status": status,
                "reason": reason,
                **meta,
            }
        )
        self.summary[f"count_{status}"] += 1

    def finalize(self, extra: Optional[Dict[str, Any]] = None) -> Path:
        payload = {
            "run_id": self.run_id,
            "mode": self.mode,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "summary": dict(self.summary),
            "entries": self.entries,
            **(extra or {}),
        }
        path = config.RUNS_DIR / f"run_{self.run_id}.json"
        save_json_file(path, payload)
        return path


def latest_run_path() -> Optional[Path]:
    """Return the most recent run telemetry file, if any."""

    if not config.RUNS_DIR.is_dir():
        return None
    runs = sorted(config.RUNS_DIR.glob("run_*.json"))
    return runs[-1] if runs else None


__all__ = ["RunTelemetry", "latest_run_path"]

import json
import sys
from pathlib import Path
from typing import Any, List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from courtcases.scraper import config
from courtcases.scraper.download_state import DownloadMarkerStore


def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    output_dir = tmp_path / "output"
    monkeypatch.setattr(config, "OUTPUT_DIR", output_dir)
    monkeypatch.setattr(config, "CACHE_DIR", tmp_path / ".cache")
    monkeypatch.setattr(config, "LOG_DIR", output_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", output_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "RUNS_DIR", output_dir / "runs")
    monkeypatch.setattr(config, "EXPORTS_DIR", output_dir / "exports")


def _read_markers(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def test_marker_lifecycle(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    events: List[Any] = []
    monkeypatch.setattr(
        sys.modules["courtcases.scraper.download_state"],
        "_scraper_event",
        lambda phase, **fields: events.append((phase, fields)),
    )

    path = tmp_path / ".cache" / "case-downloads.json"
    store = DownloadMarkerStore(path)
    assert store.is_in_progress("CR2012345") is False
    assert store.effective_ttl("CR2012345", 86400) == 86400

    store.begin_download("CR2012345")
    assert _read_markers(path) == {"CR2012345": True}
    assert store.should_force_refresh("CR2012345") is True

    store.end_download("CR2012345")
    assert _read_markers(path) == {"CR2012345": False}
    assert store.effective_ttl("CR2012345", 86400) == 86400

    assert [fields["to_status"] for _, fields in events] == ["in_progress", "complete"]
    assert all(phase == "state" for phase, _ in events)


def test_interrupted_download_forces_refresh_on_reload(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    path = tmp_path / ".cache" / "case-downloads.json"

    DownloadMarkerStore(path).begin_download("CR2012345")

    # A fresh store stands in for the next process.
    reloaded = DownloadMarkerStore(path)
    assert reloaded.is_in_progress("CR2012345") is True
    assert reloaded.effective_ttl("CR2012345", 86400) == 0
    assert reloaded.effective_ttl("CR2099999", 86400) == 86400


def test_corrupt_marker_file_marks_every_key_stale(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    path = tmp_path / ".cache" / "action-downloads.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"CR2012345-ab12": tr', encoding="utf-8")

    store = DownloadMarkerStore(path)
    assert store.should_force_refresh("CR2012345-ab12") is True
    assert store.should_force_refresh("never-seen") is True

    store.end_download("CR2012345-ab12")
    # Still stale: the rest of the lost file cannot be trusted this process.
    assert store.should_force_refresh("never-seen") is True
    assert _read_markers(path) == {"CR2012345-ab12": False}


def test_non_mapping_payload_is_treated_as_corrupt(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    path = tmp_path / "markers.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert DownloadMarkerStore(path).effective_ttl("anything", 60) == 0

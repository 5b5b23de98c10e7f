import sys
from pathlib import Path

import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from courtcases.scraper import config, export_excel, keyed_store
from courtcases.scraper.keyed_store import KeyedTableStore
from courtcases.scraper.telemetry import RunTelemetry

from tests.test_download_state import _configure_temp_paths


def _seed_stores() -> None:
    cases_dir = config.cases_output_dir()
    KeyedTableStore(cases_dir / "cases.csv", "case_id").merge(
        [{"case_id": "CR2000001", "summary": "Open"}, {"case_id": "CR2000002", "summary": "Closed"}]
    )
    KeyedTableStore(cases_dir / "actions.csv", "id").merge(
        [
            {"id": "CR2000001-0", "case_id": "CR2000001", "type": "Case Filed"},
            {"id": "CR2000001-1", "case_id": "CR2000001", "type": "Answer Filed"},
            {"id": "CR2000002-0", "case_id": "CR2000002", "type": "Case Filed"},
        ]
    )


def test_export_writes_expected_sheets(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    monkeypatch.setattr(keyed_store, "_scraper_event", lambda *a, **k: None)
    _seed_stores()
    telemetry = RunTelemetry(mode="all")
    telemetry.add("fetched", "", {"case_id": "CR2000001"})
    telemetry.add("failed", "search_error", {"case_id": "CR2000003"})
    telemetry.finalize()

    path = export_excel.export_stores_to_excel()

    assert path == tmp_path / "output" / "exports" / "cases.xlsx"
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {
        "Cases",
        "Actions",
        "Actions_By_Type",
        "Latest_Run",
        "Summary_Status",
        "Summary_Failures",
    }
    assert len(sheets["Cases"]) == 2
    by_type = dict(zip(sheets["Actions_By_Type"]["type"], sheets["Actions_By_Type"]["count"]))
    assert by_type == {"Case Filed": 2, "Answer Filed": 1}
    assert list(sheets["Summary_Failures"]["reason"]) == ["search_error"]


def test_export_without_run_history(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    monkeypatch.setattr(keyed_store, "_scraper_event", lambda *a, **k: None)
    _seed_stores()

    path = export_excel.export_stores_to_excel(tmp_path / "custom.xlsx")

    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"Cases", "Actions", "Actions_By_Type"}


def test_export_requires_stores(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)

    with pytest.raises(FileNotFoundError):
        export_excel.export_stores_to_excel()

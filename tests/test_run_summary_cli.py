import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from courtcases.scraper.error_codes import ErrorCode
from courtcases.scraper import run_summary_cli
from courtcases.scraper.telemetry import RunTelemetry, latest_run_path

from tests.test_download_state import _configure_temp_paths


def _write_run(extra_failure: bool = True) -> Path:
    telemetry = RunTelemetry(mode="all")
    telemetry.add("fetched", "", {"case_id": "CR2000001", "costs": 1, "actions": 2})
    telemetry.add("skipped", "exists", {"case_id": "CR2000002"})
    if extra_failure:
        telemetry.add(
            "failed",
            ErrorCode.NETWORK,
            {"case_id": "CR2000003", "error_message": "boom", "http_status": None},
        )
    return telemetry.finalize(extra={"counts": {"fetched": 1}})


def test_telemetry_file_contents(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)

    run_path = _write_run()

    assert run_path.parent == tmp_path / "output" / "runs"
    assert latest_run_path() == run_path
    payload = json.loads(run_path.read_text(encoding="utf-8"))
    assert payload["mode"] == "all"
    assert payload["summary"] == {"count_fetched": 1, "count_skipped": 1, "count_failed": 1}
    assert payload["counts"] == {"fetched": 1}
    assert [entry["case_id"] for entry in payload["entries"]] == ["CR2000001", "CR2000002", "CR2000003"]


def test_run_summary_cli_prints_summary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    run_path = _write_run()

    exit_code = run_summary_cli.main(["--run-file", str(run_path)])
    assert exit_code == 0

    out = capsys.readouterr().out
    assert "failed: 1" in out
    assert "skipped: 1" in out
    assert ErrorCode.NETWORK in out
    assert "CR2000003: boom" in out


def test_run_summary_cli_latest(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    _write_run(extra_failure=False)

    assert run_summary_cli.main(["--latest"]) == 0

    out = capsys.readouterr().out
    assert "fetched: 1" in out
    assert "Fail reasons" not in out


def test_run_summary_cli_errors_for_missing_run(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)
    missing = tmp_path / "run_missing.json"

    with pytest.raises(SystemExit) as excinfo:
        run_summary_cli.main(["--run-file", str(missing)])

    assert excinfo.value.code == 2
    assert "does not exist" in capsys.readouterr().err


def test_run_summary_cli_latest_without_runs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _configure_temp_paths(tmp_path, monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        run_summary_cli.main(["--latest"])

    assert excinfo.value.code == 2

"""Excel export of the keyed stores and the latest run outcomes."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

import pandas as pd

from . import config
from .case_fetcher import ACTIONS_STORE_NAME, SUMMARY_STORE_NAME
from .keyed_store import KeyedTableStore
from .telemetry import latest_run_path
from .utils import load_json_file


def _store_frame(path: Path, key_field: str) -> pd.DataFrame:
    rows = list(KeyedTableStore(path, key_field).load().values())
    return pd.DataFrame(rows)


def _latest_run_frame() -> pd.DataFrame:
    run_path = latest_run_path()
    payload = load_json_file(run_path) if run_path else None
    if not isinstance(payload, dict):
        return pd.DataFrame()
    return pd.DataFrame(payload.get("entries", []))


def export_stores_to_excel(dest_path: Optional[Path] = None) -> Path:
    """Write cases, actions and the latest run's outcomes to one workbook."""

    cases_dir = config.cases_output_dir()
    cases = _store_frame(cases_dir / SUMMARY_STORE_NAME, "case_id")
    actions = _store_frame(cases_dir / ACTIONS_STORE_NAME, "id")
    if cases.empty and actions.empty:
        raise FileNotFoundError(f"No case stores found under {cases_dir}")

    runs = _latest_run_frame()

    def safe_pivot(frame: pd.DataFrame, by: List[str]) -> pd.DataFrame:
        if frame.empty or not set(by) <= set(frame.columns):
            return pd.DataFrame()
        return frame.groupby(by).size().reset_index(name="count").sort_values("count", ascending=False)

    actions_by_type = safe_pivot(actions, ["type"])
    run_status = safe_pivot(runs, ["status"])
    run_reasons = safe_pivot(runs[runs["status"] == "failed"] if "status" in runs else runs, ["reason"])

    if dest_path is None:
        config.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
        dest_path = config.EXPORTS_DIR / "cases.xlsx"
    dest_path = Path(dest_path)

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        cases.to_excel(writer, index=False, sheet_name="Cases")
        actions.to_excel(writer, index=False, sheet_name="Actions")
        if not actions_by_type.empty:
            actions_by_type.to_excel(writer, index=False, sheet_name="Actions_By_Type")
        if not runs.empty:
            runs.to_excel(writer, index=False, sheet_name="Latest_Run")
        if not run_status.empty:
            run_status.to_excel(writer, index=False, sheet_name="Summary_Status")
        if not run_reasons.empty:
            run_reasons.to_excel(writer, index=False, sheet_name="Summary_Failures")

    return dest_path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export the case stores to an Excel workbook.")
    parser.add_argument("--output", default=None, help="Output directory the scraper wrote to.")
    parser.add_argument("--dest", type=Path, default=None, help="Workbook path to write.")
    args = parser.parse_args(argv)

    if args.output:
        config.set_output_dir(Path(args.output))
    try:
        path = export_stores_to_excel(args.dest)
    except FileNotFoundError as exc:
        parser.error(str(exc))
    print(path)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())


__all__ = ["export_stores_to_excel", "main"]

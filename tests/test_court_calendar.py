from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Dict, List

import pytest

from courtcases.scraper import config, court_calendar
from courtcases.scraper.http_client import HttpResponse
from courtcases.scraper.keyed_store import decode_rows

CALENDAR_PAGE = """
<html><body>
<table class="table table-condensed">
  <thead><tr><th colspan="6">Courtroom 4A - Judge Smith</th></tr></thead>
  <tbody>
    <tr><td>DOE, JOHN</td><td>03/04/2024</td><td>9:00 AM</td><td>Arraignment</td><td>State v. Doe</td><td>CR2400123</td></tr>
    <tr><td colspan="6">Morning docket</td></tr>
    <tr><td>ROE, JANE</td><td>03/04/2024</td><td>9:30 AM</td><td>Status</td><td>State v. Roe</td><td></td></tr>
  </tbody>
</table>
<table class="table table-condensed">
  <thead><tr><th colspan="6">Courtroom 2B</th></tr></thead>
  <tbody>
    <tr><td>SMITH, SAM</td><td>03/04/2024</td><td>1:30 PM</td><td>Trial</td><td>Smith v. Jones</td><td>CV2300077</td></tr>
  </tbody>
</table>
</body></html>
"""


class RecordingClient:
    def __init__(self, body: str) -> None:
        self.body = body
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> HttpResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        return HttpResponse(200, self.body.encode("utf-8"))


@pytest.fixture(autouse=True)
def quiet_events(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(court_calendar, "_scraper_event", lambda *a, **k: None)


def test_parse_calendar_rows_carry_courtroom_heading() -> None:
    rows = court_calendar.parse_calendar(CALENDAR_PAGE)

    assert rows == [
        {
            "ctrm": "Courtroom 4A - Judge Smith",
            "name": "DOE, JOHN",
            "date": "03/04/2024",
            "time": "9:00 AM",
            "hearing": "Arraignment",
            "caption": "State v. Doe",
            "case": "CR2400123",
        },
        {
            "ctrm": "Courtroom 2B",
            "name": "SMITH, SAM",
            "date": "03/04/2024",
            "time": "1:30 PM",
            "hearing": "Trial",
            "caption": "Smith v. Jones",
            "case": "CV2300077",
        },
    ]


def test_fetch_calendar_posts_date_form() -> None:
    client = RecordingClient(CALENDAR_PAGE)

    rows = court_calendar.fetch_calendar(
        client, date(2024, 3, 4), url="https://courts.example/calendar", county="89", ttl=0
    )

    assert len(rows) == 2
    (call,) = client.calls
    assert call["method"] == "POST"
    assert call["form"]["searchField"] == "03/04/2024"
    assert call["form"]["countyD"] == "89"
    assert call["ttl"] == 0


def test_save_calendar_writes_one_csv_per_day(tmp_path: Path) -> None:
    rows = court_calendar.parse_calendar(CALENDAR_PAGE)

    path = court_calendar.save_calendar(rows, date(2024, 3, 4), tmp_path)

    assert path == tmp_path / "2024-03-04.csv"
    saved = decode_rows(path.read_text(encoding="utf-8"))
    assert [row["case"] for row in saved] == ["CR2400123", "CV2300077"]
    assert list(saved[0]) == ["ctrm", "name", "date", "time", "hearing", "caption", "case"]


def test_main_rejects_bad_date(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setattr(config, "CALENDAR_URL", "https://courts.example/calendar")

    with pytest.raises(SystemExit) as excinfo:
        court_calendar.main(["--date", "March 4th"])

    assert excinfo.value.code == 2
    assert "Unrecognised date" in capsys.readouterr().err

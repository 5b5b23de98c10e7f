from __future__ import annotations

from pathlib import Path

import pytest

from courtcases.scraper import keyed_store
from courtcases.scraper.keyed_store import KeyedTableStore, decode_rows, encode_rows


@pytest.fixture
def event_recorder(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, dict]]:
    events: list[tuple[str, dict]] = []

    def _record(event_phase: str, **fields: object) -> None:
        events.append((event_phase, fields))

    monkeypatch.setattr(keyed_store, "_scraper_event", _record)
    return events


def test_upsert_same_key_keeps_latest_values(
    tmp_path: Path, event_recorder: list[tuple[str, dict]]
) -> None:
    store = KeyedTableStore(tmp_path / "cases.csv", "case_id")

    store.merge([{"case_id": "CR2012345", "summary": "first"}])
    store.merge([{"case_id": "CR2012345", "summary": "second"}])

    rows = store.load()
    assert list(rows) == ["CR2012345"]
    assert rows["CR2012345"]["summary"] == "second"
    assert event_recorder[-1] == ("store", {"path": "cases.csv", "key_field": "case_id", "rows": 1})


def test_merge_preserves_other_keys(tmp_path: Path, event_recorder: list[tuple[str, dict]]) -> None:
    store = KeyedTableStore(tmp_path / "cases.csv", "case_id")
    store.merge([{"case_id": "A", "summary": "a"}, {"case_id": "B", "summary": "b"}])

    count = store.merge([{"case_id": "B", "summary": "b2"}, {"case_id": "C", "summary": "c"}])

    assert count == 3
    assert {key: row["summary"] for key, row in store.load().items()} == {
        "A": "a",
        "B": "b2",
        "C": "c",
    }


def test_rows_without_key_are_never_stored(
    tmp_path: Path, event_recorder: list[tuple[str, dict]]
) -> None:
    path = tmp_path / "actions.csv"
    store = KeyedTableStore(path, "id")

    assert store.merge([{"id": "", "type": "orphan"}, {"type": "no key"}, {"id": "X-0", "type": "ok"}]) == 1
    assert list(store.load()) == ["X-0"]


def test_load_skips_keyless_rows_and_bom(tmp_path: Path) -> None:
    path = tmp_path / "cases.csv"
    path.write_text("\ufeffcase_id,summary\nA,a\n,lost\n", encoding="utf-8")

    assert KeyedTableStore(path, "case_id").load() == {"A": {"case_id": "A", "summary": "a"}}


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    assert KeyedTableStore(tmp_path / "nope.csv", "case_id").load() == {}


def test_encode_uses_union_of_columns() -> None:
    text = encode_rows([{"a": "1", "b": None}, {"a": "2", "c": "x, y"}])

    assert text.splitlines()[0] == "a,b,c"
    assert decode_rows(text) == [
        {"a": "1", "b": "", "c": ""},
        {"a": "2", "b": "", "c": "x, y"},
    ]
    assert encode_rows([]) == ""

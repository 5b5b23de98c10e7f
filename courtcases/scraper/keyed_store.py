"""Keyed CSV stores: a table file treated as ``key -> row``.

The only mutation path is load, upsert into the in-memory mapping, then save
the whole file. Concurrent writers against the same file are unsupported;
the last save wins.
"""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

from .logging_utils import _scraper_event

Row = Dict[str, str]


def _fieldnames(rows: Iterable[Mapping[str, object]]) -> List[str]:
    """Union of row keys in first-seen order."""

    seen: Dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def encode_rows(rows: Iterable[Mapping[str, object]]) -> str:
    """Encode uniform mapping-records as comma-delimited text with a header row."""

    rows = list(rows)
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=_fieldnames(rows), restval="", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if value is None else value for key, value in row.items()})
    return buffer.getvalue()


def decode_rows(text: str) -> List[Row]:
    """Decode comma-delimited text; the first row names the columns."""

    if not text.strip():
        return []
    reader = csv.DictReader(io.StringIO(text))
    return [{key: value or "" for key, value in row.items() if key is not None} for row in reader]


def write_table(path: Path, rows: Iterable[Mapping[str, object]]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode_rows(rows), encoding="utf-8")


class KeyedTableStore:
    """One CSV file holding exactly one row per ``key_field`` value."""

    def __init__(self, path: Path, key_field: str) -> None:
        self.path = Path(path)
        self.key_field = key_field

    def load(self) -> Dict[str, Row]:
        """Return the stored rows by key (empty when the file is absent)."""

        if not self.path.exists():
            return {}
        rows = decode_rows(self.path.read_text(encoding="utf-8-sig"))
        return {row[self.key_field]: row for row in rows if row.get(self.key_field)}

    def upsert(self, mapping: Dict[str, Row], row: Mapping[str, object]) -> Dict[str, Row]:
        """Insert or replace ``row`` in ``mapping`` under its key."""

        key = row.get(self.key_field)
        if not key:
            return mapping
        mapping[str(key)] = {k: "" if v is None else str(v) for k, v in row.items()}
        return mapping

    def save(self, mapping: Mapping[str, Mapping[str, object]]) -> int:
        """Overwrite the file with every row that carries a key; return the count."""

        rows = [row for row in mapping.values() if row.get(self.key_field)]
        write_table(self.path, rows)
        _scraper_event("store", path=self.path.name, key_field=self.key_field, rows=len(rows))
        return len(rows)

    def merge(self, rows: Iterable[Mapping[str, object]]) -> int:
        """Load, upsert every row, and save."""

        mapping = self.load()
        for row in rows:
            self.upsert(mapping, row)
        return self.save(mapping)


__all__ = ["KeyedTableStore", "encode_rows", "decode_rows", "write_table"]

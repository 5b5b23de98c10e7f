"""Parser for the free-text "register of actions" narrative.

The upstream page renders the register as prose in which every action opens
with a ``M/D/YYYY`` date, optionally followed by lines such as ``This action
initiated by ...`` and ``Image ID ...``. Parsing happens in two stages:
:func:`iter_chunks` cuts the text at those anchors and :func:`classify_chunk`
labels each piece; :func:`parse_actions` folds the labelled chunks into
:class:`ActionRecord` objects.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, NamedTuple, Optional

from .date_utils import parse_us_date
from .models import ActionRecord
from .utils import log_line

START = "start"
INITIATED = "initiated"
IMAGE = "image"
OTHER = "other"

OTHER_SEPARATOR = " | "

_DATE_TOKEN = r"\d{1,2}/\d{1,2}/\d{4}"

_BOUNDARY_RE = re.compile(
    rf"(?=(?<![\d/]){_DATE_TOKEN}(?![\d/]))"
    r"|(?=this\s+action\s+initiated\s+by\s)"
    r"|(?=image\s+id\s)",
    re.IGNORECASE,
)
_START_RE = re.compile(rf"^({_DATE_TOKEN})(?![\d/])(.*)$")
_INITIATED_RE = re.compile(r"^this\s+action\s+initiated\s+by\s+(.*)$", re.IGNORECASE)
_IMAGE_RE = re.compile(r"^image\s+id\s+([0-9a-z]+)(.*)$", re.IGNORECASE)


class Chunk(NamedTuple):
    kind: str
    text: str
    value: str = ""
    date_token: str = ""
    rest: str = ""


def iter_chunks(text: str) -> Iterator[str]:
    """Yield trimmed, non-empty pieces of ``text`` in source order.

    Pieces break at line ends, before each date token and before the
    ``this action initiated by`` / ``image id`` phrases.
    """

    for line in (text or "").splitlines():
        for piece in _BOUNDARY_RE.split(line):
            piece = piece.strip()
            if piece:
                yield piece


def classify_chunk(chunk: str) -> Chunk:
    match = _START_RE.match(chunk)
    if match:
        return Chunk(START, chunk, value=match.group(2).strip(), date_token=match.group(1))

    match = _INITIATED_RE.match(chunk)
    if match:
        return Chunk(INITIATED, chunk, value=match.group(1).strip())

    match = _IMAGE_RE.match(chunk)
    if match:
        return Chunk(IMAGE, chunk, value=match.group(1), rest=match.group(2).strip())

    return Chunk(OTHER, chunk)


@dataclass
class _PendingAction:
    date: Optional[date] = None
    type: str = ""
    initiated_by: Optional[str] = None
    attachment_id: Optional[str] = None
    other: List[str] = field(default_factory=list)

    def to_record(self, case_id: str, action_date: date) -> ActionRecord:
        return ActionRecord(
            case_id=case_id,
            date=action_date,
            type=self.type,
            initiated_by=self.initiated_by,
            attachment_id=self.attachment_id,
            other=OTHER_SEPARATOR.join(self.other) or None,
        )


def parse_actions(text: str, case_id: str) -> List[ActionRecord]:
    """Turn a register-of-actions narrative into dated action records.

    Text before the first date, and every action whose date token is not a
    real date, is dropped. Output order is the order of appearance.
    """

    # Anything before the first date anchor accumulates here and is dropped.
    pending: List[_PendingAction] = [_PendingAction()]

    for piece in iter_chunks(text):
        chunk = classify_chunk(piece)
        current = pending[-1]

        if chunk.kind == START:
            action_date = parse_us_date(chunk.date_token)
            if action_date is None:
                log_line(
                    f"[PARSE][WARN] case={case_id} unparseable action date "
                    f"{chunk.date_token!r}; dropping that action."
                )
            pending.append(_PendingAction(date=action_date, type=chunk.value))
        elif chunk.kind == INITIATED:
            current.initiated_by = chunk.value or None
        elif chunk.kind == IMAGE:
            current.attachment_id = chunk.value
            if chunk.rest:
                current.other.append(chunk.rest)
        else:
            current.other.append(chunk.text)

    return [action.to_record(case_id, action.date) for action in pending if action.date is not None]


__all__ = [
    "Chunk",
    "iter_chunks",
    "classify_chunk",
    "parse_actions",
    "OTHER_SEPARATOR",
]

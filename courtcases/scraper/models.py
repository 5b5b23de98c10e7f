"""Record types produced by a case fetch."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, NamedTuple, Optional

from .date_utils import format_iso

# Two-character case type, two-digit filing year, then the sequence number.
CASE_ID_RE = re.compile(r"^([A-Za-z0-9]{2})(\d{2})([A-Za-z0-9]+)$")


class CaseIdParts(NamedTuple):
    case_type: str
    case_year: str
    case_seq: str

    def join(self) -> str:
        return f"{self.case_type}{self.case_year}{self.case_seq}"


def split_case_id(case_id: str) -> CaseIdParts:
    """Split a ``TTYYNNNNN`` case identifier into the upstream form fields.

    Raises ``ValueError`` when ``case_id`` does not have that shape.
    """

    match = CASE_ID_RE.match(case_id or "")
    if not match:
        raise ValueError(f"Invalid case id {case_id!r}; expected TTYYNNNNN")
    return CaseIdParts(*match.groups())


@dataclass(frozen=True)
class CostEntry:
    """One row of the court costs table."""

    case_id: str
    incurred_by: str
    account: str
    date: Optional[date]
    amount: str

    def to_row(self) -> Dict[str, str]:
        return {
            "case_id": self.case_id,
            "incurred_by": self.incurred_by,
            "account": self.account,
            "date": format_iso(self.date),
            "amount": self.amount,
        }


@dataclass(frozen=True)
class ActionRecord:
    """A dated entry recovered from the register of actions."""

    case_id: str
    date: date
    type: str
    initiated_by: Optional[str] = None
    attachment_id: Optional[str] = None
    other: Optional[str] = None

    def to_row(self, index: Optional[int] = None) -> Dict[str, str]:
        """Flatten for CSV output; ``index`` adds the composite store key."""

        row: Dict[str, str] = {}
        if index is not None:
            row["id"] = action_key(self.case_id, index)
        row.update(
            {
                "case_id": self.case_id,
                "date": format_iso(self.date),
                "type": self.type,
                "initiated_by": self.initiated_by or "",
                "attachment_id": self.attachment_id or "",
                "other": self.other or "",
            }
        )
        return row


def action_key(case_id: str, index: int) -> str:
    """Storage identity of an action: its ordinal position within the case."""

    return f"{case_id}-{index}"


@dataclass
class CaseRecord:
    case_id: str
    summary: str = ""
    parties: str = ""
    offense: str = ""
    arresting_officers: str = ""
    schedule: str = ""
    finances: str = ""
    actions_raw: str = ""
    costs: List[CostEntry] = field(default_factory=list)
    actions: List[ActionRecord] = field(default_factory=list)

    def summary_row(self) -> Dict[str, str]:
        """Flat summary fields, without the nested costs and actions."""

        return {
            "case_id": self.case_id,
            "summary": self.summary,
            "parties": self.parties,
            "offense": self.offense,
            "arresting_officers": self.arresting_officers,
            "schedule": self.schedule,
            "finances": self.finances,
            "actions_raw": self.actions_raw,
        }

    def action_rows(self) -> List[Dict[str, str]]:
        return [action.to_row(index) for index, action in enumerate(self.actions)]

    def cost_rows(self) -> List[Dict[str, str]]:
        return [cost.to_row() for cost in self.costs]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.summary_row())
        payload["costs"] = self.cost_rows()
        payload["actions"] = self.action_rows()
        return payload


__all__ = [
    "CASE_ID_RE",
    "CaseIdParts",
    "split_case_id",
    "CostEntry",
    "ActionRecord",
    "action_key",
    "CaseRecord",
]

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Row models for the bulk maintenance request importer.

RawRow is what the spreadsheet reader hands out: header text -> cell value,
exactly as found in the file. NormalizedRow is the same row after the header
alias lookup, with canonical field names.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "NormalizedRow",
    "RawRow",
]

CANONICAL_FIELDS: tuple[str, ...] = (
    "date",
    "floor",
    "wing",
    "process",
    "location",
    "issue_description",
)


@dataclass(frozen=True)
class RawRow:
    """A single spreadsheet row before any header mapping.

    row_number is the spreadsheet row number as the user sees it
    (header on row 1 -> first data row is 2).
    """
    row_number: int
    values: dict[str, Any]  # header text (as in file) -> cell value


@dataclass(frozen=True)
class NormalizedRow:
    """Row mapped onto canonical fields. Missing fields are None."""
    row_number: int
    date: Any = None  # str, or datetime/date when the cell is a real Excel date
    floor: str | None = None
    wing: str | None = None
    process: str | None = None
    location: str | None = None
    issue_description: str | None = None

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..models.row_data import CANONICAL_FIELDS, NormalizedRow, RawRow

"""Header alias normalization.

Users rename, re-case and pad the template headers ("ISSUE DESCRIPTION ",
"Floor Name", ...). normalize_row maps whatever headers a row carries onto the
canonical field set using an alias table: for each canonical field the first
alias (in list order) that is present in the row wins. A field with no alias
present is simply None; deciding whether that is an error is the validator's
job.
"""

__all__ = [
    "header_key",
    "normalize_row",
    "normalize_rows",
]

_WS_RE = re.compile(r"\s+")


def header_key(text: str) -> str:
    """Comparison key for headers: trimmed, case-folded, single spaced."""
    return _WS_RE.sub(" ", str(text).strip()).casefold()


def _clean_value(val: Any, keep_dates: bool = False) -> Any:
    if val is None:
        return None
    if keep_dates and isinstance(val, (datetime, date)):
        # pandas.Timestamp は datetime のサブクラス
        return val.to_pydatetime() if isinstance(val, pd.Timestamp) else val
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    text = str(val).strip()
    return text or None


def normalize_row(raw: RawRow, aliases: Mapping[str, Sequence[str]]) -> NormalizedRow:
    """Map a RawRow onto canonical fields. Pure; never raises for missing data."""
    by_key: dict[str, Any] = {}
    for header, val in raw.values.items():
        # 同一キーが複数ある場合は左側の列を優先
        by_key.setdefault(header_key(header), val)

    fields: dict[str, Any] = {}
    for canonical in CANONICAL_FIELDS:
        value = None
        for alias in aliases.get(canonical, ()):
            key = header_key(alias)
            if key in by_key:
                value = _clean_value(by_key[key], keep_dates=(canonical == "date"))
                break
        fields[canonical] = value
    return NormalizedRow(row_number=raw.row_number, **fields)


def normalize_rows(rows: Sequence[RawRow], aliases: Mapping[str, Sequence[str]]) -> list[NormalizedRow]:
    return [normalize_row(r, aliases) for r in rows]

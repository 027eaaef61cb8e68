from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd
import pandas._libs.parsers as parsers
from xlrd import XLRDError
from xlrd.compdoc import CompDocError

from ..models.row_data import RawRow

"""Spreadsheet reader.

Reads the first sheet of an .xlsx/.xls workbook (or a .csv file) into RawRow
objects. The header row defaults to the first row, so the first data row is
spreadsheet row 2, which is the number users see in Excel and the number
reported back in validation errors.

pandas turns strings such as "NA" into NaN by default; a literal "NA" in the
Process column means "no process" and must survive, so those strings are
removed from the NA set (keep_na_strings).
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SheetHeaderError",
    "SpreadsheetReadError",
    "read_spreadsheet",
    "to_raw_rows",
]

SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".csv")


class SpreadsheetReadError(Exception):
    """Raised when the file cannot be read as a spreadsheet."""


class SheetHeaderError(SpreadsheetReadError):
    """Raised when the header row is missing or blank."""


def _na_options(keep_na_strings: Iterable[str] | None) -> dict[str, Any]:
    keep = set(keep_na_strings or ())
    if not keep:
        return {"keep_default_na": True, "na_values": None}
    # 既定の NA 文字列集合から keep_na_strings を除外
    custom_na = parsers.STR_NA_VALUES - keep
    return {"keep_default_na": False, "na_values": list(custom_na)}


def read_spreadsheet(
    path: Path,
    header_row: int = 0,
    keep_na_strings: Iterable[str] | None = ("NA",),
) -> list[RawRow]:
    """Read the first sheet of `path` into RawRow objects.

    Parameters
    ----------
    path: .xlsx / .xls / .csv file
    header_row: 0-based index of the header row
    keep_na_strings: strings that must stay strings instead of becoming NaN

    Raises
    ------
    SpreadsheetReadError: unsupported suffix or unreadable file
    SheetHeaderError: header row missing
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SpreadsheetReadError(
            f"unsupported file type '{suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )
    na = _na_options(keep_na_strings)
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=object, skip_blank_lines=False, **na)
        else:
            # 先頭シートのみ対象 (テンプレートは 1 シート構成)
            df = pd.read_excel(path, sheet_name=0, header=None, **na)
    except FileNotFoundError as e:
        raise SpreadsheetReadError(f"file not found: {path}") from e
    except pd.errors.EmptyDataError:
        return []
    except (ValueError, OSError, ImportError, XLRDError, CompDocError) as e:
        raise SpreadsheetReadError(f"failed to read {path.name}: {e}") from e
    return to_raw_rows(df, header_row=header_row, source=path.name)


def to_raw_rows(df: pd.DataFrame, header_row: int = 0, source: str = "<sheet>") -> list[RawRow]:
    """Split a header-less DataFrame into RawRow objects.

    Steps:
    1. Take row `header_row` as header (stripped strings, blank headers skipped)
    2. Remaining rows become data rows; fully empty rows are dropped
    3. Row numbers are 1-based spreadsheet row numbers
    """
    if df.shape[0] <= header_row:
        if df.shape[0] == 0:
            return []
        raise SheetHeaderError(f"'{source}' has no header row at row {header_row + 1}")
    header = [
        "" if pd.isna(c) else str(c).strip()
        for c in df.iloc[header_row].tolist()
    ]
    if not any(header):
        raise SheetHeaderError(f"'{source}' header row {header_row + 1} is empty")

    rows: list[RawRow] = []
    data_part = df.iloc[header_row + 1:]
    for offset, (_, raw) in enumerate(data_part.iterrows()):
        if raw.isna().all():
            continue
        values: dict[str, Any] = {}
        for col, val in zip(header, raw.tolist(), strict=False):
            if not col:
                continue
            if isinstance(val, str) and val.strip() == "":
                val = None
            # 同名の列は左側を優先
            values.setdefault(col, None if _is_missing(val) else val)
        if all(v is None for v in values.values()):
            continue
        rows.append(RawRow(row_number=header_row + offset + 2, values=values))
    return rows


def _is_missing(val: Any) -> bool:
    if val is None:
        return True
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from ..models.error_record import ValidationError
from ..models.parsed_request import ParsedRequest
from ..models.processing_result import ImportResult

"""Spreadsheet exports: upload template, validation errors, import results."""

__all__ = [
    "TEMPLATE_COLUMNS",
    "write_import_results",
    "write_template",
    "write_validation_errors",
]

TEMPLATE_COLUMNS = ["Sl.No.", "Date", "Floor", "Wing", "Process", "Location", "Issue Description"]

TEMPLATE_ROWS = [
    ["1", "10.10.25", "Ground Floor", "Right wing", "Meesho", "Gents rest room", "Electrical Switch box top"],
    ["2", "10.10.25", "Cafeteria", "Whole floor", "NA", "Eating area", "No fire extinguisher"],
]


def _write(path: Path, df: pd.DataFrame, sheet_name: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return path


def write_template(path: Path) -> Path:
    # 全列を文字列で出力 ("10.10.25" を日付や数値に変換させない)
    df = pd.DataFrame(TEMPLATE_ROWS, columns=TEMPLATE_COLUMNS, dtype=str)
    return _write(path, df, "Maintenance Requests")


def write_validation_errors(path: Path, errors: Sequence[ValidationError]) -> Path:
    df = pd.DataFrame(
        [e.to_export_row() for e in errors],
        columns=["row", "field", "message", "value"],
    )
    return _write(path, df, "Validation Errors")


def write_import_results(path: Path, requests: Sequence[ParsedRequest], result: ImportResult) -> Path:
    """One line per submitted request with its outcome.

    Requests from batches that never ran are left out.
    """
    failures = {d.row: d.error for d in result.error_details if d.row is not None}
    submitted = set(result.submitted_rows)
    records = []
    for r in requests:
        if r.row_number not in submitted:
            continue
        error = failures.get(r.row_number)
        records.append({
            "row": r.row_number,
            "title": r.title,
            "status": "failed" if error is not None else "success",
            "error": error or "",
        })
    df = pd.DataFrame(records, columns=["row", "title", "status", "error"])
    return _write(path, df, "Import Results")

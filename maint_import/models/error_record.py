from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""Error models for row validation and structured error logging.

ValidationError is the user facing, row scoped problem produced while parsing
(it ends up in the downloadable error sheet). ErrorRecord is the JSON Lines
record written to logs/errors-*.log; it covers validation problems as well as
batch and file level failures. row=-1 marks a record that is not tied to a
single spreadsheet row.
"""

__all__ = [
    "ErrorRecord",
    "ErrorType",
    "ValidationError",
]


class ErrorType:
    """Error classification values (UPPER_SNAKE)."""
    REQUIRED_FIELD = "REQUIRED_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
    ROW_INSERT_FAILED = "ROW_INSERT_FAILED"
    BATCH_FAILED = "BATCH_FAILED"
    FILE_READ_ERROR = "FILE_READ_ERROR"


@dataclass(frozen=True)
class ValidationError:
    """A single row level problem. A row may carry several of these."""
    row_number: int
    field: str  # template column name, e.g. "Issue Description"
    message: str
    value: str | None = None
    error_type: str = ErrorType.REQUIRED_FIELD

    def to_export_row(self) -> dict[str, object]:
        # 出力シートの列順: row, field, message, value
        return {
            "row": self.row_number,
            "field": self.field,
            "message": self.message,
            "value": self.value if self.value is not None else "",
        }


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: spreadsheet filename being imported
        row: spreadsheet row number. Use -1 for batch/file level errors
        field: column the error refers to ("" when not column specific)
        error_type: ErrorType value
        message: human readable description or backend error text
    """
    timestamp: str
    file: str
    row: int
    field: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str, field: str = "") -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_validation(file: str, error: ValidationError) -> ErrorRecord:
        message = error.message
        if error.value is not None:
            message = f"{message} (value={error.value!r})"
        return ErrorRecord.create(
            file=file,
            row=error.row_number,
            error_type=error.error_type,
            message=message,
            field=error.field,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line. Keys are exactly the dataclass fields."""
        return json.dumps(asdict(self), ensure_ascii=False)

from __future__ import annotations

from datetime import UTC, date, datetime

from ..models.error_record import ErrorType, ValidationError
from ..models.parsed_request import ParsedRequest
from ..models.row_data import NormalizedRow
from .classifier import Classifier
from .resolver import FuzzyResolver, Resolution, ResolutionStatus

"""Row validation and ParsedRequest construction.

Rules per row:
- Date, Floor and Issue Description are required
- Date must be DD.MM.YY (a real Excel date cell is accepted as is)
- Floor / Process text that the resolver cannot place is an error; the
  message lists the valid names so the user can fix the sheet
- Process "NA" (UNSET) is not an error

A row with no errors becomes exactly one ParsedRequest. Errors are values,
not exceptions: one row may collect several.
"""

__all__ = [
    "DATE_FORMAT",
    "RowValidator",
    "build_location",
    "build_title",
    "parse_date",
    "validate_row",
]

DATE_FORMAT = "%d.%m.%y"
TITLE_MAX_CHARS = 60
WHOLE_FLOOR = "whole floor"
NOT_SPECIFIED = "Not Specified"

# 利用者向けの列名 (テンプレートの見出し)
FIELD_LABELS = {
    "date": "Date",
    "floor": "Floor",
    "process": "Process",
    "issue_description": "Issue Description",
}


def parse_date(value: object) -> datetime | None:
    """Parse a DD.MM.YY string (or pass through a date cell) to a UTC datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value.strip(), DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)


def format_created_at(value: datetime) -> str:
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_location(wing: str | None, location: str | None) -> str:
    """Combine wing and location.

    "Whole floor" wings use the location alone.
    """
    if wing and wing.strip().casefold() == WHOLE_FLOOR:
        return location or NOT_SPECIFIED
    parts = [p for p in (wing, location) if p]
    if not parts:
        return NOT_SPECIFIED
    return " - ".join(parts)


def build_title(description: str) -> str:
    if len(description) > TITLE_MAX_CHARS:
        return description[:TITLE_MAX_CHARS] + "..."
    return description


def _unresolved(row: NormalizedRow, field: str, value: str, valid: list[str]) -> ValidationError:
    label = FIELD_LABELS[field]
    kind = "floors" if field == "floor" else "processes"
    listed = ", ".join(valid) if valid else "(none configured)"
    return ValidationError(
        row_number=row.row_number,
        field=label,
        message=f'{label} "{value}" not found in system. Valid {kind}: {listed}',
        value=value,
        error_type=ErrorType.UNRESOLVED_REFERENCE,
    )


def validate_row(
    row: NormalizedRow,
    floor: Resolution | None,
    process: Resolution | None,
    valid_floors: list[str] | None = None,
    valid_processes: list[str] | None = None,
) -> list[ValidationError]:
    """Collect every validation error for one row (empty list = valid)."""
    errors: list[ValidationError] = []
    for field in ("date", "floor", "issue_description"):
        if getattr(row, field) is None:
            label = FIELD_LABELS[field]
            errors.append(ValidationError(
                row_number=row.row_number,
                field=label,
                message=f"{label} is required",
                error_type=ErrorType.REQUIRED_FIELD,
            ))

    if row.date is not None and parse_date(row.date) is None:
        errors.append(ValidationError(
            row_number=row.row_number,
            field=FIELD_LABELS["date"],
            message="Invalid date format. Use DD.MM.YY",
            value=str(row.date),
            error_type=ErrorType.INVALID_FORMAT,
        ))

    if row.floor is not None and floor is not None and floor.status in (
        ResolutionStatus.UNRESOLVED, ResolutionStatus.EMPTY,
    ):
        errors.append(_unresolved(row, "floor", row.floor, valid_floors or []))

    if row.process is not None and process is not None and process.status in (
        ResolutionStatus.UNRESOLVED, ResolutionStatus.EMPTY,
    ):
        errors.append(_unresolved(row, "process", row.process, valid_processes or []))
    return errors


class RowValidator:
    """Resolve, classify and validate NormalizedRows into ParsedRequests."""

    def __init__(
        self,
        floor_resolver: FuzzyResolver,
        process_resolver: FuzzyResolver,
        classifier: Classifier,
    ) -> None:
        self.floor_resolver = floor_resolver
        self.process_resolver = process_resolver
        self.classifier = classifier

    def check(self, row: NormalizedRow) -> ParsedRequest | list[ValidationError]:
        floor = self.floor_resolver.resolve(row.floor) if row.floor is not None else None
        process = self.process_resolver.resolve(row.process) if row.process is not None else None
        errors = validate_row(
            row,
            floor,
            process,
            valid_floors=self.floor_resolver.valid_names,
            valid_processes=self.process_resolver.valid_names,
        )
        if errors:
            return errors

        description = row.issue_description or ""
        created = parse_date(row.date)
        return ParsedRequest(
            row_number=row.row_number,
            title=build_title(description),
            description=description,
            location=build_location(row.wing, row.location),
            priority=self.classifier.priority_for(description),
            floor_id=floor.id if floor is not None else None,
            process_id=process.id if process is not None else None,
            category_id=self.classifier.category_for(description),
            created_at=format_created_at(created) if created is not None else None,
        )

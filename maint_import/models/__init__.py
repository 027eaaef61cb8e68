"""Domain models for the bulk maintenance request importer.

This package contains the dataclasses passed between the reader, the
parsing services and the batch submitter.
"""

from .config_models import DatabaseConfig, ImportConfig, MatchingTables, ReferenceTables
from .error_record import ErrorRecord, ErrorType, ValidationError
from .parsed_request import ParsedRequest
from .processing_result import BatchResponse, ImportBatch, ImportResult, RowFailure
from .reference import ReferenceItem, ReferenceSet
from .row_data import NormalizedRow, RawRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "MatchingTables",
    "ReferenceTables",
    # Row models
    "RawRow",
    "NormalizedRow",
    "ParsedRequest",
    "ReferenceItem",
    "ReferenceSet",
    # Errors and results
    "ErrorRecord",
    "ErrorType",
    "ValidationError",
    "BatchResponse",
    "ImportBatch",
    "ImportResult",
    "RowFailure",
]

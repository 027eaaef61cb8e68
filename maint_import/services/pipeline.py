from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..excel.normalizer import normalize_row
from ..models.config_models import ImportConfig, MatchingTables
from ..models.error_record import ValidationError
from ..models.parsed_request import ParsedRequest
from ..models.reference import ReferenceSet
from ..models.row_data import RawRow
from .classifier import Classifier
from .resolver import FuzzyResolver
from .validator import RowValidator

"""Parse pipeline: RawRow -> NormalizedRow -> (resolve, classify, validate).

Pure data transformation, independent of the wizard and of the database, so
it can be tested with plain fixtures.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ParseOutcome",
    "build_validator",
    "parse_rows",
]


@dataclass(frozen=True)
class ParseOutcome:
    """Result of parsing one spreadsheet.

    Every input row is accounted for exactly once: either as a request or as
    a row number in error_rows.
    """
    requests: tuple[ParsedRequest, ...]
    errors: tuple[ValidationError, ...]
    total_rows: int

    @property
    def error_rows(self) -> list[int]:
        seen: dict[int, None] = {}
        for e in self.errors:
            seen.setdefault(e.row_number, None)
        return list(seen)

    @property
    def is_clean(self) -> bool:
        return not self.errors

    @property
    def accounted_rows(self) -> int:
        return len(self.requests) + len(self.error_rows)


def build_validator(reference: ReferenceSet, matching: MatchingTables) -> RowValidator:
    floors = FuzzyResolver(
        reference.floors,
        synonyms=matching.floor_synonyms,
        unset_values=matching.unset_values.get("floor", ()),
        policy=matching.match_policy,
    )
    processes = FuzzyResolver(
        reference.processes,
        synonyms=matching.process_synonyms,
        unset_values=matching.unset_values.get("process", ()),
        policy=matching.match_policy,
    )
    classifier = Classifier(
        reference.categories,
        category_keywords=matching.category_keywords,
        urgent_keywords=matching.urgent_keywords,
        high_keywords=matching.high_keywords,
        fallback_category=matching.fallback_category,
    )
    return RowValidator(floors, processes, classifier)


def parse_rows(
    raw_rows: Sequence[RawRow],
    reference: ReferenceSet,
    config: ImportConfig,
) -> ParseOutcome:
    validator = build_validator(reference, config.matching)
    requests: list[ParsedRequest] = []
    errors: list[ValidationError] = []
    for raw in raw_rows:
        row = normalize_row(raw, config.matching.column_aliases)
        checked = validator.check(row)
        if isinstance(checked, ParsedRequest):
            requests.append(checked)
        else:
            errors.extend(checked)
    outcome = ParseOutcome(requests=tuple(requests), errors=tuple(errors), total_rows=len(raw_rows))
    logger.debug(
        "parsed rows=%d valid=%d error_rows=%d errors=%d",
        outcome.total_rows,
        len(outcome.requests),
        len(outcome.error_rows),
        len(outcome.errors),
    )
    return outcome

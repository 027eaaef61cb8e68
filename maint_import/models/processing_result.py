from __future__ import annotations

import statistics
from dataclasses import dataclass, field, replace
from typing import Any

from .parsed_request import ParsedRequest

"""Processing result models for the bulk maintenance request importer.

ImportBatch is one fixed size slice of validated requests. BatchResponse is
the decoded reply of one bulk create call, and ImportResult the running
aggregate across completed batches.
"""

__all__ = [
    "BatchResponse",
    "BatchStatsAccumulator",
    "ImportBatch",
    "ImportResult",
    "RowFailure",
]


@dataclass(frozen=True)
class ImportBatch:
    index: int  # 0-based, submission order
    requests: tuple[ParsedRequest, ...]

    @property
    def row_numbers(self) -> list[int]:
        return [r.row_number for r in self.requests]

    def __len__(self) -> int:
        return len(self.requests)


@dataclass(frozen=True)
class RowFailure:
    """A row the backend refused inside an otherwise successful batch."""
    row: int | None
    error: str


@dataclass(frozen=True)
class BatchResponse:
    success: bool
    inserted_count: int
    failed_count: int
    error_details: tuple[RowFailure, ...] = ()

    @staticmethod
    def from_payload(data: Any) -> BatchResponse:
        """Decode the procedure's JSON reply.

        Accepts both inserted_count/failed_count and the older
        success_count/error_count spelling. A reply without an explicit
        success flag is taken as successful.
        """
        if not isinstance(data, dict):
            raise ValueError(f"unexpected bulk create response: {data!r}")
        inserted = data.get("inserted_count", data.get("success_count", 0)) or 0
        failed = data.get("failed_count", data.get("error_count", 0)) or 0
        raw_details = data.get("error_details", data.get("error_results")) or []
        details = []
        for d in raw_details:
            if isinstance(d, dict):
                row = d.get("row", d.get("row_number"))
                details.append(
                    RowFailure(
                        row=int(row) if row is not None else None,
                        error=str(d.get("error", d.get("message", ""))),
                    )
                )
            else:
                details.append(RowFailure(row=None, error=str(d)))
        return BatchResponse(
            success=bool(data.get("success", True)),
            inserted_count=int(inserted),
            failed_count=int(failed),
            error_details=tuple(details),
        )


@dataclass(frozen=True)
class ImportResult:
    """Aggregate over completed batches. Finalized after the last batch."""
    success_count: int = 0
    error_count: int = 0
    error_details: tuple[RowFailure, ...] = ()
    submitted_rows: tuple[int, ...] = ()  # rows of completed batches, in order
    batches_completed: int = 0
    total_batches: int = 0

    def add(self, batch: ImportBatch, response: BatchResponse) -> ImportResult:
        return replace(
            self,
            success_count=self.success_count + response.inserted_count,
            error_count=self.error_count + response.failed_count,
            error_details=self.error_details + response.error_details,
            submitted_rows=self.submitted_rows + tuple(batch.row_numbers),
            batches_completed=self.batches_completed + 1,
        )

    @property
    def finished(self) -> bool:
        return self.batches_completed == self.total_batches

    @property
    def all_failed(self) -> bool:
        """Every batch ran but nothing was inserted."""
        return self.finished and self.total_batches > 0 and self.success_count == 0

    @property
    def first_error(self) -> str | None:
        if not self.error_details:
            return None
        d = self.error_details[0]
        return f"row {d.row}: {d.error}" if d.row is not None else d.error

    @property
    def progress_percent(self) -> float:
        if self.total_batches == 0:
            return 0.0
        return self.batches_completed / self.total_batches * 100


@dataclass
class BatchStatsAccumulator:
    """Collects per batch call timings and summarizes them."""
    batch_times: list[float] = field(default_factory=list)

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
